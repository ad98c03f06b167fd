"""
구조화 커밋먼트 오류 분류
==========================

- ShapeMismatchError: 열기 점 길이와 변수 개수 불일치, 모양이 다른 다항식 묶음.
  프로토콜 구성 오류이며 암호 연산 전에 즉시 발생한다.
- ProofVerifyError: 검증 실패 (증명 거부). 외부 프로토콜은 이를 내부 결함이
  아니라 "증명 거부"로 다룬다.
- MalformedEncodingError: 바이트 디코딩 실패 (길이, 범위, 곡선 밖의 점).
  검증 산술이 시작되기 전에 발생한다.
"""


class ShapeMismatchError(ValueError):
    pass


class ProofVerifyError(Exception):
    """증명 검증 실패의 기반 클래스."""


class InvalidOpeningProof(ProofVerifyError):
    """열기 증명의 대수적 검사가 실패했다."""


class MismatchedVerifierOpening(ProofVerifyError):
    """Prover가 주장한 값과 Verifier가 직접 계산한 값이 다르다."""

    def __init__(self, name, claimed, recomputed):
        super().__init__(
            f"{name}: prover claimed {int(claimed)}, verifier computed {int(recomputed)}"
        )
        self.name = name


class MalformedEncodingError(ValueError):
    pass
