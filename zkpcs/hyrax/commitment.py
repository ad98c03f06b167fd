"""
Hyrax 다항식 커밋먼트
======================

다중선형 다항식의 평가값 벡터를 2^L × 2^R 행렬로 배치하고
각 행을 Pedersen 벡터 커밋먼트로 커밋한다.

  M[i][j] = f(i ‖ j)          (i: 앞쪽 L개 변수, j: 뒤쪽 R개 변수)
  Cᵢ      = ⟨M[i], G⟩          (행 커밋먼트)

**열기 (f(r) = v 증명)**:
  r = (r_행 ‖ r_열) 로 나누고 L⃗ = eq(r_행), R⃗ = eq(r_열) 라 하면
    f(r) = L⃗ᵀ · M · R⃗
  Prover는 u = L⃗ᵀ·M (길이 2^R)을 계산한다.
  Verifier는 행 커밋먼트만으로 C_u = Σ L⃗ᵢ·Cᵢ 를 계산할 수 있다.
  남은 주장 ⟨u, R⃗⟩ = v 는 내적 논증(bullet.py)으로 증명한다.

  커밋먼트 크기: 2^L 개의 G1 점 (≈ √N)
  증명 크기    : 2·R 개의 G1 점 + 스칼라 1개 (≈ log N)

**일괄 열기 (BatchedHyraxOpeningProof)**:
  모양이 같은 다항식 여러 개를 같은 점에서 열 때, 커밋먼트, 열기 점,
  주장된 값을 차례로 트랜스크립트에 넣고 무작위 계수 ρᵢ를 받아
  선형결합 하나만 연다. ρᵢ가 커밋먼트보다 먼저 정해지면 Prover가 ρᵢ에
  맞춰 다항식을 골라 거짓 값을 상쇄할 수 있다.
    f* = Σ ρᵢ·fᵢ,   C*ⱼ = Σ ρᵢ·Cᵢⱼ,   v* = Σ ρᵢ·vᵢ

사용 예시:
    >>> gens = HyraxConfig.generators_for(poly.num_vars)
    >>> C = HyraxCommitment.commit(poly, gens)
    >>> proof = HyraxOpeningProof.prove(poly, point, transcript, gens)
    >>> proof.verify(gens, verifier_transcript, point, value, C)
"""

import logging

from zkpcs.hyrax.bullet import BulletReductionProof
from zkpcs.hyrax.codec import ByteReader, encode_length, encode_points
from zkpcs.hyrax.config import parallel_map
from zkpcs.hyrax.errors import MalformedEncodingError, ShapeMismatchError
from zkpcs.hyrax.field import FR, msm
from zkpcs.hyrax.multilinear import DensePolynomial, EqPolynomial, log2_ceil, split_num_vars
from zkpcs.hyrax.pedersen import PedersenGenerators
from zkpcs.hyrax.scheme import CommitmentScheme, check_opening_point

logger = logging.getLogger(__name__)


class HyraxCommitment:
    """행 커밋먼트 리스트와 커밋된 다항식의 모양.

    속성:
        row_commitments: G1 점 리스트 (길이 2^L)
        num_vars: 커밋된 다항식의 변수 개수
        batch_size: 이어 붙여 커밋한 다항식 개수 (단일 다항식이면 1)
    """

    def __init__(self, row_commitments, num_vars, batch_size=1):
        self.row_commitments = list(row_commitments)
        self.num_vars = num_vars
        self.batch_size = batch_size
        left, _ = split_num_vars(num_vars)
        rows = len(self.row_commitments)
        if rows & (rows - 1) or rows.bit_length() - 1 != left:
            raise ShapeMismatchError(
                f"행 커밋먼트 {rows}개는 {num_vars}변수 다항식의 행 수 2^{left}와 다릅니다"
            )
        if batch_size < 1 or log2_ceil(batch_size) > num_vars:
            raise ShapeMismatchError(
                f"묶음 크기 {batch_size}는 {num_vars}변수 커밋먼트에 맞지 않습니다"
            )

    def __eq__(self, other):
        if not isinstance(other, HyraxCommitment):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __repr__(self):
        return (
            f"HyraxCommitment(rows={len(self.row_commitments)}, "
            f"num_vars={self.num_vars}, batch_size={self.batch_size})"
        )

    @classmethod
    def commit(cls, poly, generators, batch_size=1):
        """다항식을 행 단위로 커밋한다.

        행 커밋은 서로 독립이므로 parallel_map으로 계산하며 결과는 행 순서를 따른다.
        """
        _, right = split_num_vars(poly.num_vars)
        num_cols = 1 << right
        if num_cols > len(generators):
            raise ShapeMismatchError(
                f"생성자 {len(generators)}개로는 길이 {num_cols}인 행을 커밋할 수 없습니다"
            )
        rows = poly.rows(num_cols)
        logger.debug("hyrax commit: %d rows x %d columns", len(rows), num_cols)
        return cls(parallel_map(generators.commit, rows), poly.num_vars, batch_size)

    def check_shape(self, num_vars):
        """열기 점의 변수 개수가 커밋된 다항식과 같은지 확인한다."""
        if num_vars != self.num_vars:
            raise ShapeMismatchError(
                f"열기 점 변수 개수 {num_vars}가 커밋된 다항식의 변수 개수 "
                f"{self.num_vars}와 다릅니다"
            )

    def append_to_transcript(self, transcript, label=b"commitment"):
        """모양과 행 커밋먼트를 트랜스크립트에 기록한다."""
        transcript.append_u64(label + b"_num_vars", self.num_vars)
        transcript.append_u64(label + b"_batch_size", self.batch_size)
        transcript.append_points(label, self.row_commitments)

    def to_bytes(self):
        return (
            encode_length(self.num_vars)
            + encode_length(self.batch_size)
            + encode_points(self.row_commitments)
        )

    @classmethod
    def read_from(cls, reader):
        num_vars = reader.read_u32()
        batch_size = reader.read_u32()
        rows = reader.read_points()
        try:
            return cls(rows, num_vars, batch_size)
        except ShapeMismatchError as err:
            raise MalformedEncodingError(str(err)) from err

    @classmethod
    def from_bytes(cls, data):
        reader = ByteReader(data)
        commitment = cls.read_from(reader)
        reader.finish()
        return commitment


def _append_opening(transcript, point, value):
    transcript.append_message(b"protocol", b"hyrax opening")
    transcript.append_scalars(b"opening_point", point)
    transcript.append_scalar(b"opening_value", value)


class HyraxOpeningProof:
    """단일 다항식의 Hyrax 열기 증명.

    속성:
        ipa: ⟨u, eq(r_열)⟩ = v 에 대한 BulletReductionProof
    """

    def __init__(self, ipa):
        self.ipa = ipa

    def __eq__(self, other):
        if not isinstance(other, HyraxOpeningProof):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    @classmethod
    def prove(cls, poly, opening_point, transcript, generators):
        """poly(opening_point) 에 대한 열기 증명을 생성한다.

        Args:
            poly: DensePolynomial
            opening_point: FR 리스트 (길이 poly.num_vars)
            transcript: ProofTranscript
            generators: PedersenGenerators (길이 2^R 이상)

        Returns:
            HyraxOpeningProof
        """
        check_opening_point(opening_point, poly.num_vars)
        left, right = split_num_vars(poly.num_vars)
        row_weights = EqPolynomial(opening_point[:left]).evals()
        col_weights = EqPolynomial(opening_point[left:]).evals()

        # u = L⃗ᵀ · M
        num_cols = 1 << right
        u = [FR(0)] * num_cols
        for weight, row in zip(row_weights, poly.rows(num_cols)):
            for j in range(num_cols):
                u[j] = u[j] + weight * row[j]

        value = sum((a * b for a, b in zip(u, col_weights)), FR(0))
        _append_opening(transcript, opening_point, value)
        ipa = BulletReductionProof.prove(transcript, generators, u, col_weights)
        return cls(ipa)

    def verify(self, generators, transcript, opening_point, value, commitment):
        """commitment가 opening_point에서 value로 열림을 검증한다.

        모양 불일치는 ShapeMismatchError, 검증 실패는 InvalidOpeningProof.
        """
        num_vars = len(opening_point)
        commitment.check_shape(num_vars)
        left, _ = split_num_vars(num_vars)
        row_weights = EqPolynomial(opening_point[:left]).evals()
        col_weights = EqPolynomial(opening_point[left:]).evals()

        _append_opening(transcript, opening_point, value)
        combined = msm(commitment.row_commitments, row_weights)
        self.ipa.verify(transcript, generators, combined, col_weights, value)

    def to_bytes(self):
        return self.ipa.to_bytes()

    @classmethod
    def read_from(cls, reader):
        return cls(BulletReductionProof.read_from(reader))

    @classmethod
    def from_bytes(cls, data):
        reader = ByteReader(data)
        proof = cls.read_from(reader)
        reader.finish()
        return proof


def _begin_batch(transcript, opening_point, openings, commitments):
    transcript.append_message(b"protocol", b"batched hyrax opening")
    for commitment in commitments:
        commitment.append_to_transcript(transcript)
    transcript.append_scalars(b"opening_point", opening_point)
    transcript.append_scalars(b"claims_to_open", openings)
    return transcript.challenge_vector(b"rlc_coefficients", len(openings))


class BatchedHyraxOpeningProof:
    """같은 모양의 다항식 여러 개를 같은 점에서 여는 증명."""

    def __init__(self, joint_proof):
        self.joint_proof = joint_proof

    def __eq__(self, other):
        if not isinstance(other, BatchedHyraxOpeningProof):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    @classmethod
    def prove(cls, polynomials, opening_point, openings, transcript, generators,
              commitments=None):
        """선형결합 Σ ρᵢ·fᵢ 하나를 열어 모든 openings를 증명한다.

        ρᵢ는 커밋먼트, 열기 점, 주장된 값이 모두 기록된 뒤에 뽑는다.
        commitments를 생략하면 generators로 다시 계산한다.
        """
        if not polynomials:
            raise ShapeMismatchError("빈 다항식 묶음은 열 수 없습니다")
        if len(polynomials) != len(openings):
            raise ShapeMismatchError(
                f"다항식 {len(polynomials)}개, 평가값 {len(openings)}개"
            )
        for poly in polynomials:
            check_opening_point(opening_point, poly.num_vars)
        if commitments is None:
            commitments = [HyraxCommitment.commit(poly, generators) for poly in polynomials]
        elif len(commitments) != len(polynomials):
            raise ShapeMismatchError(
                f"다항식 {len(polynomials)}개, 커밋먼트 {len(commitments)}개"
            )

        coeffs = _begin_batch(transcript, opening_point, openings, commitments)
        combined = polynomials[0].scaled(coeffs[0])
        for coeff, poly in zip(coeffs[1:], polynomials[1:]):
            combined = combined + poly.scaled(coeff)
        joint = HyraxOpeningProof.prove(combined, opening_point, transcript, generators)
        return cls(joint)

    def verify(self, generators, opening_point, openings, commitments, transcript):
        if not commitments:
            raise ShapeMismatchError("빈 커밋먼트 묶음은 검증할 수 없습니다")
        if len(commitments) != len(openings):
            raise ShapeMismatchError(
                f"커밋먼트 {len(commitments)}개, 평가값 {len(openings)}개"
            )
        for commitment in commitments:
            commitment.check_shape(len(opening_point))

        coeffs = _begin_batch(transcript, opening_point, openings, commitments)
        value = sum((c * v for c, v in zip(coeffs, openings)), FR(0))
        num_rows = len(commitments[0].row_commitments)
        combined = HyraxCommitment(
            [
                msm([c.row_commitments[i] for c in commitments], coeffs)
                for i in range(num_rows)
            ],
            len(opening_point),
        )
        self.joint_proof.verify(generators, transcript, opening_point, value, combined)

    def to_bytes(self):
        return self.joint_proof.to_bytes()

    @classmethod
    def from_bytes(cls, data):
        return cls(HyraxOpeningProof.from_bytes(data))


class HyraxConfig(CommitmentScheme):
    """Hyrax 백엔드의 타입 묶음.

    HyraxConfig(poly).commit(generators) 는 이 설정이 감싼 원시 다항식을 커밋한다.
    """

    Field = FR
    Generators = PedersenGenerators
    Commitment = HyraxCommitment
    Proof = HyraxOpeningProof
    BatchedProof = BatchedHyraxOpeningProof

    def __init__(self, poly):
        if not isinstance(poly, DensePolynomial):
            poly = DensePolynomial(poly)
        self.poly = poly

    def commit(self, generators):
        return HyraxCommitment.commit(self.poly, generators)

    @staticmethod
    def generators_for(num_vars, label=None):
        """num_vars 변수 다항식의 행을 커밋하기에 충분한 생성자."""
        _, right = split_num_vars(num_vars)
        return PedersenGenerators.new(1 << right, label)
