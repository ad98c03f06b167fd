"""
구조화 커밋먼트 계약 (Commitment Scheme / Structured Commitment / Structured Opening)
=====================================================================================

외부 논증 시스템(lookup, memory-checking)과 구체적인 커밋먼트 백엔드 사이의
경계를 정의한다.

**CommitmentScheme**:
  한 백엔드에서 함께 쓰이는 타입들의 묶음 (Field, Generators, Commitment,
  Proof, BatchedProof). 한 번의 프로토콜 실행은 하나의 묶음만 사용한다.

**StructuredCommitment**:
  관련된 다항식 여러 개를 하나의 논리적 객체로 묶어 커밋먼트 하나를 만든다.

**StructuredOpeningProof**:
  묶음 전체를 한 점에서 여는 절차.

    Unopened ─open()─▶ Opened(values) ─prove_openings()─▶ Proven(proof)
                                                            │
                        verify_openings() ◀─────────────────┘
                          ├─ None            (Verified)
                          └─ ProofVerifyError (Rejected)

  Verifier 쪽은 Prover가 만든 객체를 재사용하지 않는다. 바이트에서 다시
  만든 뒤 compute_verifier_openings()로 스스로 계산할 수 있는 값을 채우고
  verify_openings()를 부른다.

**평가 순서**:
  묶음 안의 평가 순서는 묶음의 정의로 고정된다 (정렬하거나 해시로 정하지 않는다).
  트랜스크립트 기록 순서가 건전성 논증의 일부이기 때문이다.
"""

from abc import ABC, abstractmethod
from typing import ClassVar, Generic, Sequence, Type, TypeVar

from zkpcs.hyrax.errors import ShapeMismatchError


class NoPreprocessing:
    """Verifier가 스스로 계산할 값이 없는 묶음의 기본 전처리 타입."""

    def __repr__(self):
        return "NoPreprocessing()"


class CommitmentScheme(ABC):
    """백엔드 타입 묶음.

    하위 클래스는 연관 타입을 클래스 속성으로 지정하고, 자신이 특화된
    원시 데이터를 커밋하는 commit(generators)를 구현한다.
    """

    Field: ClassVar[type]
    Generators: ClassVar[type]
    Commitment: ClassVar[type]
    Proof: ClassVar[type]
    BatchedProof: ClassVar[type]

    @abstractmethod
    def commit(self, generators):
        raise NotImplementedError


C = TypeVar("C", bound=CommitmentScheme)
P = TypeVar("P", bound="StructuredCommitment")


class StructuredCommitment(ABC, Generic[C]):
    """같은 변수 개수를 가진 다항식들의 고정된 묶음.

    commit은 결정론적이어야 한다: 같은 다항식과 같은 생성자는 항상
    비트 단위로 같은 커밋먼트를 만든다. 생성자와 다항식을 변경하지 않는다.
    """

    scheme: ClassVar[Type[CommitmentScheme]]

    @property
    @abstractmethod
    def num_vars(self) -> int:
        """묶음 안 모든 다항식의 공통 변수 개수."""

    @abstractmethod
    def commit(self, generators):
        """묶음 전체에 대한 커밋먼트 하나를 만든다."""


class StructuredOpeningProof(ABC, Generic[C, P]):
    """구조화 커밋먼트를 한 점에서 여는 증명의 계약.

    하나의 StructuredCommitment에 여러 StructuredOpeningProof가 대응할 수 있다:
    같은 다항식의 서로 다른 부분집합을 서로 다른 점에서 열 수 있다.
    """

    Preprocessing: ClassVar[type] = NoPreprocessing
    Proof: ClassVar[type]

    @classmethod
    @abstractmethod
    def open(cls, polynomials: P, opening_point: Sequence):
        """묶음의 모든 다항식을 opening_point에서 평가한다.

        트랜스크립트와는 상호작용하지 않는 순수 평가이다.
        점의 길이가 변수 개수와 다르면 어떤 필드 연산보다 먼저
        ShapeMismatchError를 던진다.
        """

    @classmethod
    @abstractmethod
    def prove_openings(cls, polynomials: P, opening_point: Sequence, openings,
                       transcript, generators=None, commitment=None):
        """polynomials를 opening_point에서 평가하면 openings가 된다는 증명.

        open()이 만든 같은 점과 같은 값을 받아야 한다. 그 일관성은
        외부 프로토콜의 책임이며 여기서 다시 계산하지 않는다.

        commitment는 Verifier가 받을 커밋먼트이다. 트랜스크립트에 챌린지보다
        먼저 기록되며, 생략하면 generators로 다시 계산한다.
        """

    def compute_verifier_openings(self, preprocessing, opening_point: Sequence) -> None:
        """Verifier가 공개 데이터만으로 계산할 수 있는 값을 채운다.

        기본 구현은 아무것도 하지 않는다. 백엔드 작성자는 묶음마다
        Verifier가 유도할 수 있는 값이 있는지 직접 결정해야 한다.
        """
        return None

    @abstractmethod
    def verify_openings(self, generators, opening_proof, commitment,
                        opening_point: Sequence, transcript) -> None:
        """Prover와 같은 순서로 트랜스크립트를 재생하고 증명을 검사한다.

        거부할 때는 ProofVerifyError를 던진다. commitment와 generators는
        변경하지 않는다.
        """

    @abstractmethod
    def to_bytes(self) -> bytes:
        """주장된 평가값들의 정규 인코딩."""

    @classmethod
    @abstractmethod
    def from_bytes(cls, data: bytes):
        """to_bytes의 역. 잘못된 입력은 MalformedEncodingError."""


def check_opening_point(opening_point, num_vars):
    """열기 점의 길이를 검사한다. 암호 연산 전에 호출한다."""
    if len(opening_point) != num_vars:
        raise ShapeMismatchError(
            f"열기 점 길이 {len(opening_point)}가 변수 개수 {num_vars}와 다릅니다"
        )

