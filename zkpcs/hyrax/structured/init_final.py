"""
메모리 검사(memory-checking) 초기/최종 묶음
==========================================

오프라인 메모리 검사의 "init/final" 다중집합 해시에는 메모리 셀마다
세 종류의 값이 필요하다.

  a_init_final : 셀 주소        → 항등 다항식 id(x). 열기 점만으로 계산 가능.
  v_init_final : 셀의 초기 값   → 공개 테이블 (전처리). Verifier가 직접 계산.
  final_cts    : 셀의 최종 카운터 → 증인(witness). Prover만 알고 있어 커밋한다.

앞의 두 값은 Verifier가 스스로 계산하므로 증명할 필요가 없다.
커밋하는 것은 final_cts 뿐이며, 증명 크기와 Prover/Verifier의 일이 모두 줄어든다.

Prover가 a_init_final / v_init_final 값을 함께 보낸 경우 Verifier는 자신이
계산한 값과 비교하고, 다르면 MismatchedVerifierOpening으로 거부한다.
"""

import logging

from zkpcs.hyrax.codec import (
    ByteReader,
    encode_optional_scalar,
    encode_optional_scalars,
    encode_scalars,
)
from zkpcs.hyrax.commitment import HyraxConfig, HyraxOpeningProof
from zkpcs.hyrax.config import parallel_map
from zkpcs.hyrax.errors import (
    MalformedEncodingError,
    MismatchedVerifierOpening,
    ProofVerifyError,
    ShapeMismatchError,
)
from zkpcs.hyrax.field import to_fr
from zkpcs.hyrax.multilinear import DensePolynomial, IdentityPolynomial
from zkpcs.hyrax.scheme import StructuredOpeningProof, check_opening_point
from zkpcs.hyrax.structured.batched import (
    BatchedPolynomials,
    prove_joint_opening,
    verify_joint_opening,
)

logger = logging.getLogger(__name__)


class InitFinalPreprocessing:
    """회로 모양마다 한 번 만드는 공개 데이터: 메모리별 초기 값 테이블."""

    def __init__(self, tables):
        self.tables = tuple(
            t if isinstance(t, DensePolynomial) else DensePolynomial(t) for t in tables
        )
        if not self.tables:
            raise ShapeMismatchError("테이블이 하나 이상 필요합니다")
        self.num_vars = self.tables[0].num_vars
        for table in self.tables:
            if table.num_vars != self.num_vars:
                raise ShapeMismatchError(
                    f"테이블 변수 개수 불일치: {table.num_vars} != {self.num_vars}"
                )

    def __len__(self):
        return len(self.tables)

    def evaluate(self, opening_point):
        """(a_init_final, v_init_final) 을 opening_point에서 계산한다."""
        check_opening_point(opening_point, self.num_vars)
        point = [to_fr(r) for r in opening_point]
        a = IdentityPolynomial(self.num_vars).evaluate(point)
        v = parallel_map(lambda table: table.evaluate(point), self.tables)
        return a, v


class InitFinalPolynomials(BatchedPolynomials):
    """메모리별 final_cts 다항식 묶음. 커밋되는 것은 final_cts 뿐이다."""

    def __init__(self, final_cts, preprocessing):
        super().__init__(final_cts)
        if preprocessing.num_vars != self.num_vars:
            raise ShapeMismatchError(
                f"전처리 변수 개수 {preprocessing.num_vars}가 final_cts의 "
                f"{self.num_vars}와 다릅니다"
            )
        if len(preprocessing) != len(self.polys):
            raise ShapeMismatchError(
                f"테이블 {len(preprocessing)}개, final_cts {len(self.polys)}개"
            )
        self.preprocessing = preprocessing

    @property
    def final_cts(self):
        return self.polys


class InitFinalOpenings(StructuredOpeningProof[HyraxConfig, InitFinalPolynomials]):
    """init/final 묶음의 열린 값.

    속성:
        final: 메모리별 final_cts 평가값 (증명 대상)
        a_init_final: 항등 다항식 평가값 (None이면 Verifier가 채움)
        v_init_final: 메모리별 테이블 평가값 (None이면 Verifier가 채움)
    """

    Preprocessing = InitFinalPreprocessing
    Proof = HyraxOpeningProof

    def __init__(self, final, a_init_final=None, v_init_final=None):
        self.final = [to_fr(v) for v in final]
        self.a_init_final = None if a_init_final is None else to_fr(a_init_final)
        self.v_init_final = None if v_init_final is None else [to_fr(v) for v in v_init_final]
        self._mismatches = []
        self._verifier_filled = False

    def __eq__(self, other):
        if not isinstance(other, InitFinalOpenings):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    @classmethod
    def open(cls, polynomials, opening_point):
        check_opening_point(opening_point, polynomials.num_vars)
        point = [to_fr(r) for r in opening_point]
        final = parallel_map(lambda poly: poly.evaluate(point), polynomials.final_cts)
        a, v = polynomials.preprocessing.evaluate(point)
        return cls(final, a, v)

    def without_verifier_openings(self):
        """Verifier가 계산할 수 있는 값을 뺀 사본 (전송 크기 축소)."""
        return InitFinalOpenings(self.final)

    @classmethod
    def prove_openings(cls, polynomials, opening_point, openings, transcript, generators=None,
                       commitment=None):
        check_opening_point(opening_point, polynomials.num_vars)
        if len(openings.final) != len(polynomials):
            raise ShapeMismatchError(
                f"final 평가값 {len(openings.final)}개, 다항식 {len(polynomials)}개"
            )
        return prove_joint_opening(
            polynomials, opening_point, openings.final, transcript, generators, commitment
        )

    def compute_verifier_openings(self, preprocessing, opening_point):
        """a_init_final, v_init_final 을 공개 데이터로 계산해 채운다.

        Prover가 이미 값을 보냈다면 덮어쓰지 않고 불일치를 기록해 두었다가
        verify_openings에서 거부한다.
        """
        if len(preprocessing) != len(self.final):
            raise ShapeMismatchError(
                f"테이블 {len(preprocessing)}개, final 평가값 {len(self.final)}개"
            )
        a, v = preprocessing.evaluate(opening_point)
        self._mismatches = []
        if self.a_init_final is not None and self.a_init_final != a:
            self._mismatches.append(("a_init_final", self.a_init_final, a))
        if self.v_init_final is not None:
            for i, (claimed, recomputed) in enumerate(zip(self.v_init_final, v)):
                if claimed != recomputed:
                    self._mismatches.append((f"v_init_final[{i}]", claimed, recomputed))
        self.a_init_final = a
        self.v_init_final = v
        self._verifier_filled = True

    def verify_openings(self, generators, opening_proof, commitment, opening_point, transcript):
        if not self._verifier_filled:
            raise ProofVerifyError(
                "Verifier 계산 값이 없습니다; compute_verifier_openings를 먼저 호출하세요"
            )
        if self._mismatches:
            name, claimed, recomputed = self._mismatches[0]
            logger.debug("prover claim disagrees with verifier opening %s", name)
            raise MismatchedVerifierOpening(name, claimed, recomputed)
        verify_joint_opening(
            generators, opening_proof, commitment, opening_point, self.final, transcript
        )

    def to_bytes(self):
        return (
            encode_scalars(self.final)
            + encode_optional_scalar(self.a_init_final)
            + encode_optional_scalars(self.v_init_final)
        )

    @classmethod
    def from_bytes(cls, data):
        reader = ByteReader(data)
        final = reader.read_scalars()
        a = reader.read_optional_scalar()
        v = reader.read_optional_scalars()
        reader.finish()
        if not final:
            raise MalformedEncodingError("final 평가값이 없습니다")
        if v is not None and len(v) != len(final):
            raise MalformedEncodingError(
                f"v_init_final {len(v)}개, final {len(final)}개"
            )
        return cls(final, a, v)
