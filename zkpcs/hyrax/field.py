"""
Hyrax 기반 모듈: 유한체(Finite Field) 및 G1 그룹 연산
======================================================

구조화 커밋먼트 전체에서 사용되는 기본 대수적 도구를 정의한다.
곡선 연산 자체는 py_ecc가 제공하며, 이 모듈은 얇은 어댑터이다.

**유한체 FR**:
  bn128 곡선의 스칼라 필드. 다중선형 다항식의 평가값, 열기 점(opening point),
  Fiat-Shamir 챌린지가 모두 FR 원소이다.

**G1 그룹 연산**:
  Pedersen 벡터 커밋먼트와 내적 논증(inner-product argument)에 필요한
  스칼라 곱, 덧셈, 다중 스칼라 곱(MSM).
  항등원(무한원점)은 py_ecc 관례대로 None으로 표현한다.

**해시-투-커브 (hash_to_g1)**:
  이산로그를 아무도 모르는 생성자를 결정론적으로 만든다.
  Pedersen 커밋먼트의 바인딩(binding) 성질은 생성자들 사이의
  이산로그 관계를 아무도 모른다는 가정에 기대므로, G1에 스칼라를
  곱해서 생성자를 만들면 안 된다.

사용 예시:
    >>> from zkpcs.hyrax.field import FR, G1, ec_mul, msm
    >>> P = ec_mul(G1, FR(5))
    >>> Q = msm([G1, P], [FR(2), FR(3)])   # 2·G1 + 3·(5·G1) = 17·G1
"""

import hashlib

from py_ecc import bn128
from py_ecc.fields import bn128_FQ as FQ

from zkpcs.hyrax.errors import ShapeMismatchError


# ─────────────────────────────────────────────────────────────────────
# 유한체(Finite Field) FR
# ─────────────────────────────────────────────────────────────────────

class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    py_ecc의 FQ 클래스를 상속하여 +, -, *, /, ** 연산을 제공한다.

    주의:
        py_ecc의 나눗셈은 0의 역원을 0으로 돌려준다.
        챌린지의 역원이 필요한 곳에서는 호출자가 0을 직접 검사해야 한다.
    """
    field_modulus = bn128.curve_order


# 스칼라 필드 위수
CURVE_ORDER = bn128.curve_order

# 베이스 필드 위수 (G1 좌표가 속한 필드)
FIELD_MODULUS = bn128.field_modulus


def to_fr(value):
    """int 또는 FR 값을 FR로 정규화한다."""
    if isinstance(value, FR):
        return value
    return FR(int(value) % CURVE_ORDER)


def inner_product(a, b):
    """두 FR 벡터의 내적 ⟨a, b⟩."""
    if len(a) != len(b):
        raise ShapeMismatchError(
            f"내적 길이 불일치: {len(a)} != {len(b)}"
        )
    result = FR(0)
    for x, y in zip(a, b):
        result = result + x * y
    return result


# ─────────────────────────────────────────────────────────────────────
# G1 그룹 연산
# ─────────────────────────────────────────────────────────────────────

G1 = bn128.G1

# 항등원 (point at infinity)
Z1 = None


def ec_mul(point, scalar):
    """타원곡선 스칼라 곱셈: scalar · point."""
    if point is None:
        return None
    if isinstance(scalar, FQ):
        scalar = int(scalar)
    scalar = scalar % CURVE_ORDER
    if scalar == 0:
        return None
    return bn128.multiply(point, scalar)


def ec_add(p1, p2):
    """타원곡선 점 덧셈: p1 + p2."""
    if p1 is None:
        return p2
    if p2 is None:
        return p1
    return bn128.add(p1, p2)


def ec_neg(point):
    """타원곡선 점의 역원: -point."""
    if point is None:
        return None
    return bn128.neg(point)


def ec_sum(points):
    """점 리스트의 합 Σ Pᵢ."""
    result = None
    for point in points:
        result = ec_add(result, point)
    return result


def msm(points, scalars):
    """다중 스칼라 곱 (multi-scalar multiplication): Σ sᵢ · Pᵢ.

    0 스칼라는 건너뛴다. 길이가 다르면 어떤 곡선 연산도 하기 전에
    ShapeMismatchError를 던진다.

    Args:
        points: G1 점 리스트
        scalars: FR 원소(또는 int) 리스트

    Returns:
        G1 점 (모든 항이 0이면 None)
    """
    if len(points) != len(scalars):
        raise ShapeMismatchError(
            f"MSM 길이 불일치: 점 {len(points)}개, 스칼라 {len(scalars)}개"
        )
    result = None
    for point, scalar in zip(points, scalars):
        if int(scalar) % CURVE_ORDER == 0:
            continue
        result = ec_add(result, ec_mul(point, scalar))
    return result


def is_on_curve_g1(point):
    """점이 bn128 G1 위에 있는지 확인한다. (G1의 코팩터는 1이다.)"""
    if point is None:
        return True
    return bn128.is_on_curve(point, bn128.b)


# ─────────────────────────────────────────────────────────────────────
# 해시-투-커브
# ─────────────────────────────────────────────────────────────────────

def hash_to_g1(label, index):
    """label과 index로부터 G1 점을 결정론적으로 유도한다 (try-and-increment).

    x = SHA-256(label ‖ index ‖ counter) mod p 를 시도하여
    x³ + 3 이 제곱잉여가 되는 첫 x를 취한다.
    p ≡ 3 (mod 4) 이므로 제곱근은 (x³+3)^((p+1)/4) 로 구한다.
    두 제곱근 중 작은 y를 택해 결과를 정규화한다.

    Args:
        label: 도메인 분리용 바이트열
        index: 생성자 번호 (0 이상의 정수)

    Returns:
        G1 점 (x, y)
    """
    p = FIELD_MODULUS
    counter = 0
    while True:
        h = hashlib.sha256(
            label
            + index.to_bytes(8, "big")
            + counter.to_bytes(4, "big")
        ).digest()
        x = int.from_bytes(h, "big") % p
        rhs = (pow(x, 3, p) + 3) % p
        y = pow(rhs, (p + 1) // 4, p)
        if y * y % p == rhs:
            y = min(y, p - y)
            return (bn128.FQ(x), bn128.FQ(y))
        counter += 1
