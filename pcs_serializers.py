"""
구조화 커밋먼트 데이터 직렬화/역직렬화 헬퍼
============================================

TinyDB에 저장 가능한 형태로 객체를 변환한다.
FR, G1, 다항식, 열기 점은 문자열 리스트로, 커밋먼트/열린 값/증명은
정규 바이트 인코딩의 hex 문자열로 저장한다.
"""

from zkpcs.hyrax.commitment import HyraxCommitment, HyraxOpeningProof
from zkpcs.hyrax.field import FR
from zkpcs.hyrax.multilinear import DensePolynomial
from zkpcs.hyrax.structured import BatchedOpenings


# ─── FR ───

def serialize_fr(val):
    """FR → str(int)"""
    return str(int(val))


def deserialize_fr(s):
    """str(int) → FR"""
    return FR(int(s))


def serialize_fr_list(lst):
    """list[FR] → list[str]"""
    return [str(int(v)) for v in lst]


def deserialize_fr_list(data):
    """list[str] → list[FR]"""
    return [FR(int(s)) for s in data]


# ─── G1 point ───

def serialize_g1(point):
    """G1 point → [str, str] or None"""
    if point is None:
        return None
    return [str(int(point[0])), str(int(point[1]))]


# ─── 다항식 ───

def serialize_polys(polys):
    """list[DensePolynomial] → list[list[str]] (평가값)"""
    return [serialize_fr_list(p.evals) for p in polys]


def deserialize_polys(data):
    """list[list[str]] → list[DensePolynomial]"""
    return [DensePolynomial(deserialize_fr_list(evals)) for evals in data]


# ─── 정규 바이트 인코딩 (hex) ───

def serialize_commitment(commitment):
    return commitment.to_bytes().hex()


def deserialize_commitment(hex_str):
    return HyraxCommitment.from_bytes(bytes.fromhex(hex_str))


def serialize_openings(openings):
    return openings.to_bytes().hex()


def deserialize_openings(hex_str):
    return BatchedOpenings.from_bytes(bytes.fromhex(hex_str))


def serialize_proof(proof):
    return proof.to_bytes().hex()


def deserialize_proof(hex_str):
    return HyraxOpeningProof.from_bytes(bytes.fromhex(hex_str))


# ─── 표시용 헬퍼 ───

def _shorten(s):
    if len(s) <= 8:
        return s
    return s[:4] + "..." + s[-4:]


def g1_short(point):
    """G1 point → 축약 문자열 (UI 표시용)"""
    if point is None:
        return "∞"
    return f"({_shorten(str(int(point[0])))}, {_shorten(str(int(point[1])))})"


def fr_short(val):
    """FR → 축약 문자열 (UI 표시용)"""
    if val is None:
        return "None"
    s = str(int(val))
    if len(s) <= 10:
        return s
    return s[:4] + "..." + s[-4:]
