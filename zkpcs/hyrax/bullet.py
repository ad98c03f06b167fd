"""
내적 논증 (Bulletproofs 축약, Inner-Product Argument)
=======================================================

커밋된 벡터 a (C = ⟨a, G⟩)와 공개 벡터 b에 대해 ⟨a, b⟩ = v 임을
로그 크기의 증명으로 보인다.

**준비**:
  v를 트랜스크립트에 넣고 챌린지 w로 Q = w·h 를 만든다.
  P = C + v·Q = ⟨a, G⟩ + ⟨a, b⟩·Q

**각 라운드 (길이를 절반으로)**:
  L = ⟨a_lo, G_hi⟩ + ⟨a_lo, b_hi⟩·Q
  R = ⟨a_hi, G_lo⟩ + ⟨a_hi, b_lo⟩·Q
  챌린지 x 를 받아
  a' = x·a_lo + x⁻¹·a_hi
  b' = x⁻¹·b_lo + x·b_hi
  G' = x⁻¹·G_lo + x·G_hi
  P' = x²·L + P + x⁻²·R

**마지막**:
  길이 1이 되면 a 하나를 보낸다. Verifier는
  P_final == a·G_final + (a·b_final)·Q 를 확인한다.
  G_final, b_final 은 챌린지로 만든 s 벡터와의 MSM/내적으로 한 번에 계산한다.

증명 크기: 2·log₂n 개의 G1 점 + 스칼라 1개.
"""

import logging

from zkpcs.hyrax.codec import ByteReader, encode_points, encode_scalar
from zkpcs.hyrax.errors import InvalidOpeningProof, ShapeMismatchError
from zkpcs.hyrax.field import FR, ec_add, ec_mul, inner_product, msm
from zkpcs.hyrax.multilinear import log2_exact

logger = logging.getLogger(__name__)


def _begin(transcript, generators, commitment, n, claim):
    transcript.append_message(b"protocol", b"bullet reduction")
    transcript.append_u64(b"ipa_n", n)
    transcript.append_point(b"ipa_commitment", commitment)
    transcript.append_scalar(b"ipa_claim", claim)
    w = transcript.challenge_scalar(b"ipa_w")
    return ec_mul(generators.h, w)


def _round_challenge(transcript, L, R):
    transcript.append_point(b"L", L)
    transcript.append_point(b"R", R)
    return transcript.challenge_scalar(b"u")


class BulletReductionProof:
    """로그 크기 내적 논증.

    속성:
        L_vec, R_vec: 라운드별 G1 점
        a_final: 축약이 끝난 뒤의 스칼라
    """

    def __init__(self, L_vec, R_vec, a_final):
        self.L_vec = list(L_vec)
        self.R_vec = list(R_vec)
        self.a_final = a_final

    def __eq__(self, other):
        if not isinstance(other, BulletReductionProof):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    @classmethod
    def prove(cls, transcript, generators, a, b):
        """⟨a, b⟩ 에 대한 내적 논증을 생성한다.

        Args:
            transcript: ProofTranscript (Verifier와 같은 상태여야 함)
            generators: PedersenGenerators (길이 len(a) 이상)
            a: 비밀 벡터 (커밋된 값)
            b: 공개 벡터

        Returns:
            BulletReductionProof
        """
        n = len(a)
        if len(b) != n:
            raise ShapeMismatchError(f"a, b 길이 불일치: {n} != {len(b)}")
        log2_exact(n)
        G = list(generators.slice(n))
        a = list(a)
        b = list(b)

        commitment = msm(G, a)
        Q = _begin(transcript, generators, commitment, n, inner_product(a, b))

        L_vec, R_vec = [], []
        while n > 1:
            n //= 2
            a_lo, a_hi = a[:n], a[n:]
            b_lo, b_hi = b[:n], b[n:]
            G_lo, G_hi = G[:n], G[n:]

            L = ec_add(msm(G_hi, a_lo), ec_mul(Q, inner_product(a_lo, b_hi)))
            R = ec_add(msm(G_lo, a_hi), ec_mul(Q, inner_product(a_hi, b_lo)))
            L_vec.append(L)
            R_vec.append(R)

            x = _round_challenge(transcript, L, R)
            if x == FR(0):
                raise ValueError("0 챌린지가 나왔습니다; 트랜스크립트를 다시 시작하세요")
            x_inv = FR(1) / x

            a = [x * lo + x_inv * hi for lo, hi in zip(a_lo, a_hi)]
            b = [x_inv * lo + x * hi for lo, hi in zip(b_lo, b_hi)]
            G = [ec_add(ec_mul(lo, x_inv), ec_mul(hi, x)) for lo, hi in zip(G_lo, G_hi)]

        return cls(L_vec, R_vec, a[0])

    def verify(self, transcript, generators, commitment, b, claim):
        """⟨a, b⟩ = claim 을 C = ⟨a, G⟩ 에 대해 검증한다.

        실패하면 InvalidOpeningProof를 던진다.
        """
        n = len(b)
        rounds = log2_exact(n)
        if len(self.L_vec) != rounds or len(self.R_vec) != rounds:
            raise InvalidOpeningProof(
                f"라운드 수 불일치: {rounds}개 필요, L {len(self.L_vec)}개 / R {len(self.R_vec)}개"
            )
        G = list(generators.slice(n))

        Q = _begin(transcript, generators, commitment, n, claim)

        challenges = []
        for L, R in zip(self.L_vec, self.R_vec):
            x = _round_challenge(transcript, L, R)
            if x == FR(0):
                raise InvalidOpeningProof("0 챌린지")
            challenges.append(x)

        # P = C + v·Q + Σ (x²·L + x⁻²·R)
        P = ec_add(commitment, ec_mul(Q, claim))
        s = [FR(1)]
        for x, L, R in zip(challenges, self.L_vec, self.R_vec):
            x_inv = FR(1) / x
            P = ec_add(P, ec_add(ec_mul(L, x * x), ec_mul(R, x_inv * x_inv)))
            s = [e * f for e in s for f in (x_inv, x)]

        G_final = msm(G, s)
        b_final = inner_product(b, s)
        expected = ec_add(
            ec_mul(G_final, self.a_final),
            ec_mul(Q, self.a_final * b_final),
        )
        if P != expected:
            logger.debug("inner-product check failed (n=%d)", n)
            raise InvalidOpeningProof("내적 논증 검사 실패")

    def to_bytes(self):
        return encode_points(self.L_vec) + encode_points(self.R_vec) + encode_scalar(self.a_final)

    @classmethod
    def read_from(cls, reader):
        L_vec = reader.read_points()
        R_vec = reader.read_points()
        a_final = reader.read_scalar()
        return cls(L_vec, R_vec, a_final)

    @classmethod
    def from_bytes(cls, data):
        reader = ByteReader(data)
        proof = cls.read_from(reader)
        reader.finish()
        return proof
