"""
Pedersen 생성자 (Generators)
=============================

Pedersen 벡터 커밋먼트에 필요한 공개 파라미터.

  C = Σ vᵢ · Gᵢ

**설정(setup)**:
  KZG의 SRS와 달리 비밀 값(toxic waste)이 없다. 모든 생성자는
  hash_to_g1로 유도되므로 누구나 같은 레이블에서 같은 생성자를
  다시 만들 수 있고, 생성자 사이의 이산로그 관계는 아무도 모른다.

**보조 생성자 h**:
  내적 논증에서 주장된 내적 값을 커밋먼트에 묶는 데 쓰인다.
  Gᵢ 들과 다른 인덱스 공간에서 유도한다.

생성자는 설정 후 변경되지 않으며, 한 세션의 모든 commit/verify 호출이
잠금 없이 공유한다.

사용 예시:
    >>> gens = PedersenGenerators.new(8)
    >>> C = gens.commit([FR(1), FR(2), FR(3)])
"""

import functools
import logging

from zkpcs.hyrax.config import SETTINGS
from zkpcs.hyrax.errors import ShapeMismatchError
from zkpcs.hyrax.field import hash_to_g1, msm
from zkpcs.hyrax.multilinear import log2_exact

logger = logging.getLogger(__name__)


class PedersenGenerators:
    """Pedersen 벡터 커밋먼트 생성자.

    속성:
        generators: G1 점 튜플 (G₀, ..., G_{n-1})
        h: 보조 생성자
        label: 유도에 사용한 레이블
    """

    def __init__(self, generators, h, label):
        self.generators = tuple(generators)
        self.h = h
        self.label = label

    @classmethod
    def new(cls, size, label=None):
        """size개의 생성자를 label에서 결정론적으로 유도한다.

        같은 (size, label)에 대해서는 캐시된 같은 객체를 돌려준다.

        Args:
            size: 생성자 개수 (2의 거듭제곱)
            label: 도메인 분리 레이블 (기본값: 설정의 ZKPCS_GENERATORS_LABEL)
        """
        if label is None:
            label = SETTINGS.generators_label
        log2_exact(size)
        return _generate(cls, size, label)

    def __len__(self):
        return len(self.generators)

    def __eq__(self, other):
        if not isinstance(other, PedersenGenerators):
            return NotImplemented
        return self.generators == other.generators and self.h == other.h

    def __hash__(self):
        return hash((self.label, len(self.generators)))

    def __repr__(self):
        return f"PedersenGenerators(size={len(self.generators)}, label={self.label!r})"

    def slice(self, n):
        """앞쪽 n개의 생성자 (h는 공유)."""
        if n > len(self.generators):
            raise ShapeMismatchError(
                f"생성자가 부족합니다: {n}개 필요, {len(self.generators)}개 보유"
            )
        return self.generators[:n]

    def commit(self, values):
        """Σ vᵢ·Gᵢ."""
        return msm(list(self.slice(len(values))), values)


@functools.lru_cache(maxsize=32)
def _generate(cls, size, label):
    logger.debug("deriving %d Pedersen generators (label=%r)", size, label)
    generators = [hash_to_g1(label, i) for i in range(size)]
    h = hash_to_g1(label + b"/h", 0)
    return cls(generators, h, label)
