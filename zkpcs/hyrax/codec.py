"""
정규(canonical) 바이트 인코딩
==============================

커밋먼트와 증명을 더 큰 증명 객체에 넣어 전송/저장하기 위한 결정론적
이진 인코딩. 같은 논리적 값은 항상 같은 바이트가 된다.

  스칼라(FR)   : 32바이트 빅엔디안, CURVE_ORDER 이상이면 거부
  G1 점        : x ‖ y 각 32바이트 빅엔디안, 무한원점은 64바이트의 0
                 좌표가 FIELD_MODULUS 이상이거나 곡선 밖이면 거부
  벡터         : 4바이트 빅엔디안 개수 ‖ 원소들
  선택(optional): 1바이트 플래그(0/1) ‖ 값

디코딩은 잘린 입력, 남는 바이트, 범위 밖의 값을 모두
MalformedEncodingError로 거부하며 검증 산술보다 먼저 실행된다.
"""

from py_ecc import bn128

from zkpcs.hyrax.errors import MalformedEncodingError
from zkpcs.hyrax.field import FR, CURVE_ORDER, FIELD_MODULUS, is_on_curve_g1

SCALAR_SIZE = 32
POINT_SIZE = 64


def encode_scalar(value):
    return (int(value) % CURVE_ORDER).to_bytes(SCALAR_SIZE, "big")


def encode_point(point):
    if point is None:
        return b"\x00" * POINT_SIZE
    x, y = point
    return int(x).to_bytes(32, "big") + int(y).to_bytes(32, "big")


def encode_length(n):
    return n.to_bytes(4, "big")


def encode_scalars(values):
    return encode_length(len(values)) + b"".join(encode_scalar(v) for v in values)


def encode_points(points):
    return encode_length(len(points)) + b"".join(encode_point(p) for p in points)


def encode_optional_scalar(value):
    if value is None:
        return b"\x00"
    return b"\x01" + encode_scalar(value)


def encode_optional_scalars(values):
    if values is None:
        return b"\x00"
    return b"\x01" + encode_scalars(values)


class ByteReader:
    """바이트열을 앞에서부터 읽는 디코더."""

    def __init__(self, data):
        if not isinstance(data, (bytes, bytearray)):
            raise MalformedEncodingError(f"bytes가 필요합니다: {type(data).__name__}")
        self.data = bytes(data)
        self.offset = 0

    def take(self, n):
        if self.offset + n > len(self.data):
            raise MalformedEncodingError(
                f"입력이 잘렸습니다: offset {self.offset}에서 {n}바이트 필요, "
                f"남은 바이트 {len(self.data) - self.offset}"
            )
        chunk = self.data[self.offset:self.offset + n]
        self.offset += n
        return chunk

    def read_length(self):
        n = int.from_bytes(self.take(4), "big")
        # 각 원소는 최소 1바이트이므로 남은 길이보다 많을 수 없다.
        if n > len(self.data) - self.offset:
            raise MalformedEncodingError(f"벡터 길이 {n}이 남은 입력보다 깁니다")
        return n

    def read_u32(self):
        """길이 검사 없는 4바이트 부호 없는 정수."""
        return int.from_bytes(self.take(4), "big")

    def read_flag(self):
        flag = self.take(1)[0]
        if flag not in (0, 1):
            raise MalformedEncodingError(f"잘못된 선택 플래그: {flag}")
        return flag == 1

    def read_scalar(self):
        value = int.from_bytes(self.take(SCALAR_SIZE), "big")
        if value >= CURVE_ORDER:
            raise MalformedEncodingError("스칼라가 필드 범위를 벗어났습니다")
        return FR(value)

    def read_point(self):
        raw = self.take(POINT_SIZE)
        if raw == b"\x00" * POINT_SIZE:
            return None
        x = int.from_bytes(raw[:32], "big")
        y = int.from_bytes(raw[32:], "big")
        if x >= FIELD_MODULUS or y >= FIELD_MODULUS:
            raise MalformedEncodingError("점 좌표가 베이스 필드 범위를 벗어났습니다")
        point = (bn128.FQ(x), bn128.FQ(y))
        if not is_on_curve_g1(point):
            raise MalformedEncodingError("점이 G1 곡선 위에 있지 않습니다")
        return point

    def read_scalars(self):
        return [self.read_scalar() for _ in range(self.read_length())]

    def read_points(self):
        return [self.read_point() for _ in range(self.read_length())]

    def read_optional_scalar(self):
        return self.read_scalar() if self.read_flag() else None

    def read_optional_scalars(self):
        return self.read_scalars() if self.read_flag() else None

    def finish(self):
        if self.offset != len(self.data):
            raise MalformedEncodingError(
                f"디코딩 후 {len(self.data) - self.offset}바이트가 남았습니다"
            )
