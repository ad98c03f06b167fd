"""
Fiat-Shamir 트랜스크립트
=========================

대화식 열기 논증을 비대화식으로 바꾸기 위한 해시 트랜스크립트.

**동작 방식**:
  - Prover와 Verifier는 같은 레이블로 트랜스크립트를 시작한다.
  - 커밋먼트, 열기 점, 주장된 평가값을 프로토콜이 정한 순서대로 추가한다.
  - 챌린지는 지금까지 누적된 상태 전체를 SHA-256으로 해싱해 얻는다.
  - 생성된 해시는 상태에 다시 추가된다 (체이닝).

  추가 순서가 하나라도 다르면 모든 후속 챌린지가 달라지고 검증은 실패한다.
  그러므로 트랜스크립트는 전역 상태가 아니라 모든 호출에 명시적으로
  넘기는 단일 소유 객체이다.

**인코딩**:
  각 항목은 label ‖ len(payload) (4바이트 빅엔디안) ‖ payload 로 기록되어
  레이블과 값의 경계가 모호해지지 않는다.

사용 예시:
    >>> t = ProofTranscript(b"example")
    >>> t.append_point(b"commitment", C)
    >>> r = t.challenge_vector(b"opening_point", 3)
"""

import copy
import hashlib

from zkpcs.hyrax.config import SETTINGS
from zkpcs.hyrax.field import FR, CURVE_ORDER


class ProofTranscript:
    """SHA-256 기반 Fiat-Shamir 트랜스크립트.

    속성:
        state: 현재까지 누적된 해시 입력 바이트열
        n_rounds: 지금까지 생성한 챌린지 개수
    """

    def __init__(self, label=None):
        if label is None:
            label = SETTINGS.transcript_label
        self.state = bytearray()
        self.n_rounds = 0
        self.append_message(b"init", label)

    def append_message(self, label, message):
        """임의의 바이트열을 추가한다."""
        self.state.extend(label)
        self.state.extend(len(message).to_bytes(4, "big"))
        self.state.extend(message)

    def append_u64(self, label, value):
        self.append_message(label, int(value).to_bytes(8, "big"))

    def append_scalar(self, label, scalar):
        """FR 스칼라를 32바이트 빅엔디안으로 추가한다."""
        val = int(scalar) % CURVE_ORDER
        self.append_message(label, val.to_bytes(32, "big"))

    def append_scalars(self, label, scalars):
        self.append_message(label + b"_begin", len(scalars).to_bytes(4, "big"))
        for scalar in scalars:
            self.append_scalar(label, scalar)
        self.append_message(label + b"_end", b"")

    def append_point(self, label, point):
        """G1 점을 추가한다. 무한원점(None)은 64바이트의 0이다."""
        if point is None:
            payload = b"\x00" * 64
        else:
            x, y = point
            payload = int(x).to_bytes(32, "big") + int(y).to_bytes(32, "big")
        self.append_message(label, payload)

    def append_points(self, label, points):
        self.append_message(label + b"_begin", len(points).to_bytes(4, "big"))
        for point in points:
            self.append_point(label, point)
        self.append_message(label + b"_end", b"")

    def challenge_scalar(self, label):
        """누적된 상태에서 FR 챌린지를 도출한다.

        해시 결과는 상태에 다시 추가되므로 연속 호출은 서로 다른 값을 낸다.
        """
        self.state.extend(label)
        self.state.extend(self.n_rounds.to_bytes(4, "big"))
        h = hashlib.sha256(bytes(self.state)).digest()
        self.state.extend(h)
        self.n_rounds += 1
        return FR(int.from_bytes(h, "big") % CURVE_ORDER)

    def challenge_vector(self, label, n):
        return [self.challenge_scalar(label) for _ in range(n)]

    def fork(self):
        """같은 상태를 가진 독립 사본. 테스트에서 Prover/Verifier를 같은 시드로 시작할 때 쓴다."""
        return copy.deepcopy(self)
