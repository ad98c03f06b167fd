"""
일반 구조화 묶음: BatchedPolynomials / BatchedOpenings
========================================================

**커밋 (이어 붙이기)**:
  같은 변수 개수 ℓ를 가진 다항식 k개 f₀..f_{k-1}을 하나의 다항식
    F(s, x) = f_{bin(s)}(x),   s ∈ {0,1}^m, m = ⌈log₂k⌉
  로 이어 붙이고 F를 Hyrax로 커밋한다. 커밋먼트는 HyraxCommitment 하나이다.
  행 수는 전체 크기에만 의존하고, 데이터를 몇 개의 다항식으로 나눴는지에는
  의존하지 않는다.

**열기**:
  1. 커밋먼트(모양과 행 커밋먼트), 열기 점 r을 트랜스크립트에 기록
  2. 주장된 값 v₀..v_{k-1}을 묶음 순서대로 기록
  3. 선택 챌린지 s ∈ FR^m 을 받음
  4. 결합 주장 F(s, r) = Σ eq(s, i)·vᵢ
  5. F를 (s ‖ r)에서 여는 HyraxOpeningProof 하나

  커밋먼트는 k를 함께 기록하므로 Verifier는 주장된 값의 개수와 열기 점의
  길이를 트랜스크립트를 건드리기 전에 확인한다.

  vᵢ 중 하나라도 틀리면 vᵢ들의 다중선형 보간이 F(·, r)과 달라지고,
  무작위 s에서 두 다항식이 같을 확률은 m / |FR| 이하이다.
"""

import logging

from zkpcs.hyrax.codec import ByteReader, encode_scalars
from zkpcs.hyrax.commitment import HyraxCommitment, HyraxConfig, HyraxOpeningProof
from zkpcs.hyrax.config import parallel_map
from zkpcs.hyrax.errors import InvalidOpeningProof, MalformedEncodingError, ShapeMismatchError
from zkpcs.hyrax.field import FR, to_fr
from zkpcs.hyrax.multilinear import DensePolynomial, EqPolynomial, concatenate, log2_ceil
from zkpcs.hyrax.scheme import (
    StructuredCommitment,
    StructuredOpeningProof,
    check_opening_point,
)

logger = logging.getLogger(__name__)


class BatchedPolynomials(StructuredCommitment[HyraxConfig]):
    """변수 개수가 같은 다항식들의 순서 있는 묶음."""

    scheme = HyraxConfig
    Commitment = HyraxCommitment

    def __init__(self, polys):
        polys = tuple(p if isinstance(p, DensePolynomial) else DensePolynomial(p) for p in polys)
        if not polys:
            raise ShapeMismatchError("묶음에는 다항식이 하나 이상 있어야 합니다")
        num_vars = polys[0].num_vars
        for i, poly in enumerate(polys):
            if poly.num_vars != num_vars:
                raise ShapeMismatchError(
                    f"다항식 {i}의 변수 개수 {poly.num_vars}가 {num_vars}와 다릅니다"
                )
        self.polys = polys
        self._num_vars = num_vars

    def __len__(self):
        return len(self.polys)

    def __iter__(self):
        return iter(self.polys)

    @property
    def num_vars(self):
        return self._num_vars

    @property
    def selector_vars(self):
        return log2_ceil(len(self.polys))

    @property
    def joint_num_vars(self):
        """이어 붙인 다항식의 변수 개수."""
        return self.selector_vars + self._num_vars

    def joint_polynomial(self):
        return concatenate(list(self.polys))

    def generators(self, label=None):
        """이 묶음을 커밋하기에 충분한 기본 생성자."""
        return HyraxConfig.generators_for(self.joint_num_vars, label)

    def commit(self, generators):
        logger.debug(
            "committing %d polynomials with %d variables", len(self.polys), self._num_vars
        )
        return HyraxCommitment.commit(
            self.joint_polynomial(), generators, batch_size=len(self.polys)
        )


def combine_claims(selector, values):
    """Σ eq(s, i)·vᵢ. 빈 슬롯(i ≥ k)은 영 다항식이므로 기여하지 않는다."""
    if len(values) > 1 << len(selector):
        raise ShapeMismatchError(
            f"주장된 값 {len(values)}개는 선택 변수 {len(selector)}개로 가릴 수 없습니다"
        )
    weights = EqPolynomial(selector).evals()
    return sum((w * v for w, v in zip(weights, values)), FR(0))


def _begin_joint_opening(transcript, commitment, opening_point, values):
    """커밋먼트, 열기 점, 주장된 값을 기록한 뒤 선택 챌린지 s를 뽑는다."""
    transcript.append_message(b"protocol", b"structured opening")
    commitment.append_to_transcript(transcript)
    transcript.append_scalars(b"opening_point", opening_point)
    transcript.append_scalars(b"claimed_openings", values)
    return transcript.challenge_vector(b"batch_selector", log2_ceil(commitment.batch_size))


def check_joint_shape(commitment, opening_point, values):
    """Verifier 입력을 커밋된 묶음의 모양과 대조한다. 트랜스크립트 기록 전에 호출한다.

    열기 점 길이는 Verifier 자신의 입력이므로 ShapeMismatchError,
    주장된 값의 개수는 Prover가 보낸 데이터이므로 InvalidOpeningProof.
    """
    commitment.check_shape(log2_ceil(commitment.batch_size) + len(opening_point))
    if len(values) != commitment.batch_size:
        raise InvalidOpeningProof(
            f"주장된 값 {len(values)}개가 커밋된 묶음 크기 {commitment.batch_size}와 다릅니다"
        )


def prove_joint_opening(polynomials, opening_point, values, transcript, generators,
                        commitment=None):
    """이어 붙인 다항식을 (s ‖ r)에서 연다.

    commitment를 생략하면 generators로 다시 계산한다.
    """
    if generators is None:
        generators = polynomials.generators()
    if commitment is None:
        commitment = polynomials.commit(generators)
    elif (commitment.num_vars, commitment.batch_size) != (
        polynomials.joint_num_vars, len(polynomials)
    ):
        raise ShapeMismatchError(
            f"커밋먼트 모양 ({commitment.num_vars}변수, {commitment.batch_size}개)이 "
            f"묶음 ({polynomials.joint_num_vars}변수, {len(polynomials)}개)과 다릅니다"
        )
    selector = _begin_joint_opening(transcript, commitment, opening_point, values)
    return HyraxOpeningProof.prove(
        polynomials.joint_polynomial(),
        selector + list(opening_point),
        transcript,
        generators,
    )


def verify_joint_opening(generators, proof, commitment, opening_point, values, transcript):
    """prove_joint_opening과 같은 순서로 트랜스크립트를 재생하고 검증한다."""
    check_joint_shape(commitment, opening_point, values)
    selector = _begin_joint_opening(transcript, commitment, opening_point, values)
    joint_point = selector + list(opening_point)
    claim = combine_claims(selector, values)
    proof.verify(generators, transcript, joint_point, claim, commitment)


class BatchedOpenings(StructuredOpeningProof[HyraxConfig, BatchedPolynomials]):
    """BatchedPolynomials 전체를 한 점에서 연 값들.

    속성:
        values: 묶음 순서대로의 평가값 리스트
    """

    Proof = HyraxOpeningProof

    def __init__(self, values):
        self.values = [to_fr(v) for v in values]

    def __eq__(self, other):
        if not isinstance(other, BatchedOpenings):
            return NotImplemented
        return self.values == other.values

    def __repr__(self):
        return f"BatchedOpenings({[int(v) for v in self.values]})"

    @classmethod
    def open(cls, polynomials, opening_point):
        check_opening_point(opening_point, polynomials.num_vars)
        point = [to_fr(r) for r in opening_point]
        return cls(parallel_map(lambda poly: poly.evaluate(point), polynomials.polys))

    @classmethod
    def prove_openings(cls, polynomials, opening_point, openings, transcript, generators=None,
                       commitment=None):
        check_opening_point(opening_point, polynomials.num_vars)
        if len(openings.values) != len(polynomials):
            raise ShapeMismatchError(
                f"평가값 {len(openings.values)}개, 다항식 {len(polynomials)}개"
            )
        return prove_joint_opening(
            polynomials, opening_point, openings.values, transcript, generators, commitment
        )

    def verify_openings(self, generators, opening_proof, commitment, opening_point, transcript):
        verify_joint_opening(
            generators, opening_proof, commitment, opening_point, self.values, transcript
        )

    def to_bytes(self):
        return encode_scalars(self.values)

    @classmethod
    def from_bytes(cls, data):
        reader = ByteReader(data)
        values = reader.read_scalars()
        reader.finish()
        if not values:
            raise MalformedEncodingError("열린 값이 없습니다")
        return cls(values)
