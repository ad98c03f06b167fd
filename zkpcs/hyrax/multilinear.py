"""
다중선형 다항식 (Multilinear Polynomial)
=========================================

구조화 커밋먼트의 다항식은 불리언 초입방체 {0,1}^ℓ 위의 평가값으로
표현되는 다중선형 확장(MLE)이다.

**변수 순서 (빅엔디안)**:
  평가값 인덱스 i의 최상위 비트가 첫 번째 변수에 대응한다.
  point = [r₁, ..., r_ℓ] 에서 r₁이 최상위 비트를 고정한다.

**eq 다항식**:
  eq(r, x) = Π (rᵢ·xᵢ + (1-rᵢ)(1-xᵢ))
  f(r) = Σₓ f(x)·eq(r, x) 이므로 평가는 eq 테이블과의 내적이다.

**Hyrax 행렬 분할**:
  ℓ개의 변수를 앞쪽 L = ℓ // 2 개(행)와 뒤쪽 R = ℓ - L 개(열)로 나누면
  평가값 벡터는 2^L × 2^R 행렬이 되고 f(r) = eq(r_행)ᵀ · M · eq(r_열).

사용 예시:
    >>> p = DensePolynomial([FR(1), FR(2), FR(3), FR(4)])
    >>> p.num_vars  # 2
    >>> p.evaluate([FR(0), FR(1)])  # FR(2)
"""

from zkpcs.hyrax.errors import ShapeMismatchError
from zkpcs.hyrax.field import FR, to_fr, inner_product


def log2_exact(n):
    """n이 2의 거듭제곱일 때 log₂n. 아니면 ShapeMismatchError."""
    if n < 1 or (n & (n - 1)) != 0:
        raise ShapeMismatchError(f"길이는 2의 거듭제곱이어야 합니다: {n}")
    return n.bit_length() - 1


def log2_ceil(n):
    """⌈log₂n⌉ (n ≥ 1)."""
    return (n - 1).bit_length()


def split_num_vars(num_vars):
    """Hyrax 행렬의 (행 변수 수, 열 변수 수)."""
    left = num_vars // 2
    return left, num_vars - left


# ─────────────────────────────────────────────────────────────────────
# eq 다항식
# ─────────────────────────────────────────────────────────────────────

class EqPolynomial:
    """고정된 점 r에 대한 eq(r, ·)."""

    def __init__(self, point):
        self.point = [to_fr(r) for r in point]

    def evals(self):
        """eq(r, x)를 모든 x ∈ {0,1}^ℓ 에 대해 계산한다 (빅엔디안 인덱스).

        변수를 하나씩 펼치며 테이블을 두 배로 키운다. O(2^ℓ).
        """
        table = [FR(1)]
        for r in self.point:
            one_minus_r = FR(1) - r
            next_table = []
            for value in table:
                next_table.append(value * one_minus_r)
                next_table.append(value * r)
            table = next_table
        return table

    def evaluate(self, other):
        """eq(r, other)."""
        if len(other) != len(self.point):
            raise ShapeMismatchError(
                f"eq 평가 점 길이 불일치: {len(other)} != {len(self.point)}"
            )
        result = FR(1)
        for r, x in zip(self.point, other):
            x = to_fr(x)
            result = result * (r * x + (FR(1) - r) * (FR(1) - x))
        return result


class IdentityPolynomial:
    """id(x) = x의 정수 인덱스 를 다중선형 확장한 다항식.

    Verifier는 평가값 테이블 없이 O(ℓ)에 계산할 수 있다:
        id(r) = Σᵢ 2^(ℓ-1-i) · rᵢ
    """

    def __init__(self, num_vars):
        self.num_vars = num_vars

    def evaluate(self, point):
        if len(point) != self.num_vars:
            raise ShapeMismatchError(
                f"열기 점 길이 {len(point)}가 변수 개수 {self.num_vars}와 다릅니다"
            )
        result = FR(0)
        for r in point:
            result = result * FR(2) + to_fr(r)
        return result

    def to_dense(self):
        return DensePolynomial([FR(i) for i in range(1 << self.num_vars)])


# ─────────────────────────────────────────────────────────────────────
# 평가값 기반 다중선형 다항식
# ─────────────────────────────────────────────────────────────────────

class DensePolynomial:
    """불리언 초입방체 위의 평가값으로 표현된 다중선형 다항식.

    속성:
        evals: 길이 2^ℓ 의 FR 리스트
        num_vars: 변수 개수 ℓ
    """

    def __init__(self, evals):
        self.evals = [to_fr(v) for v in evals]
        self.num_vars = log2_exact(len(self.evals))

    def __len__(self):
        return len(self.evals)

    def __eq__(self, other):
        if not isinstance(other, DensePolynomial):
            return NotImplemented
        return self.evals == other.evals

    def __repr__(self):
        return f"DensePolynomial(num_vars={self.num_vars})"

    def evaluate(self, point):
        """f(point) = ⟨f, eq(point)⟩.

        길이 검사는 필드 연산보다 먼저 수행한다.
        """
        if len(point) != self.num_vars:
            raise ShapeMismatchError(
                f"열기 점 길이 {len(point)}가 변수 개수 {self.num_vars}와 다릅니다"
            )
        return inner_product(self.evals, EqPolynomial(point).evals())

    def bound_top_vars(self, values):
        """앞쪽 k개 변수를 values로 고정한 (ℓ-k)변수 다항식."""
        k = len(values)
        if k > self.num_vars:
            raise ShapeMismatchError(f"{k}개 변수를 고정할 수 없습니다 (ℓ={self.num_vars})")
        weights = EqPolynomial(values).evals()
        size = 1 << (self.num_vars - k)
        result = [FR(0)] * size
        for block, weight in enumerate(weights):
            offset = block * size
            for j in range(size):
                result[j] = result[j] + weight * self.evals[offset + j]
        return DensePolynomial(result)

    def rows(self, num_cols):
        """평가값을 행 길이 num_cols 의 행렬(행 우선)로 본다."""
        return [
            self.evals[i:i + num_cols]
            for i in range(0, len(self.evals), num_cols)
        ]

    def scaled(self, scalar):
        return DensePolynomial([scalar * v for v in self.evals])

    def __add__(self, other):
        if self.num_vars != other.num_vars:
            raise ShapeMismatchError(
                f"변수 개수가 다른 다항식은 더할 수 없습니다: {self.num_vars} != {other.num_vars}"
            )
        return DensePolynomial([a + b for a, b in zip(self.evals, other.evals)])


def concatenate(polys):
    """같은 크기의 다항식 k개를 이어 붙여 하나의 다항식을 만든다.

    결과는 ⌈log₂k⌉ 개의 선택 변수를 앞(최상위)에 추가로 가진다.
    빈 슬롯은 영 다항식으로 채운다.
    선택 변수를 i의 이진 표현으로 고정하면 i번째 다항식이 된다.
    """
    if not polys:
        raise ShapeMismatchError("빈 다항식 묶음은 이어 붙일 수 없습니다")
    num_vars = polys[0].num_vars
    for poly in polys:
        if poly.num_vars != num_vars:
            raise ShapeMismatchError(
                f"묶음 안의 다항식 변수 개수가 다릅니다: {poly.num_vars} != {num_vars}"
            )
    selector_vars = log2_ceil(len(polys))
    size = 1 << num_vars
    evals = []
    for poly in polys:
        evals.extend(poly.evals)
    evals.extend([FR(0)] * (((1 << selector_vars) - len(polys)) * size))
    return DensePolynomial(evals)
