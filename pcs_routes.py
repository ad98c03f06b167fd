"""
구조화 커밋먼트 Flask Blueprint
================================

Setup → Commit → Open → Prove → Verify 단계를 차례로 실행해 보는 JSON 엔드포인트.
각 단계의 결과는 TinyDB에 저장되며 다음 단계가 이를 읽는다.

  POST /pcs/setup    {num_vars, num_polys, seed}
  POST /pcs/commit
  POST /pcs/open     {point: [int, ...]}
  POST /pcs/prove
  POST /pcs/verify   {point?: [int, ...], values?: [int, ...]}
  GET  /pcs/state
  POST /pcs/reset
"""

import logging
import random

from flask import Blueprint, jsonify, request
from tinydb import Query

from zkpcs.hyrax.errors import (
    MalformedEncodingError,
    ProofVerifyError,
    ShapeMismatchError,
)
from zkpcs.hyrax.multilinear import DensePolynomial
from zkpcs.hyrax.structured import BatchedOpenings, BatchedPolynomials
from zkpcs.hyrax.transcript import ProofTranscript

from pcs_serializers import (
    serialize_fr_list, deserialize_fr_list,
    serialize_g1,
    serialize_polys, deserialize_polys,
    serialize_commitment, deserialize_commitment,
    serialize_openings, deserialize_openings,
    serialize_proof, deserialize_proof,
    g1_short, fr_short,
)

logger = logging.getLogger(__name__)

pcs_bp = Blueprint('pcs', __name__, url_prefix='/pcs')

DATA = Query()

# DB는 app.py에서 주입
DB = None

# Prover와 Verifier가 같은 레이블로 트랜스크립트를 시작한다.
TRANSCRIPT_LABEL = b"pcs-playground"

# 데모 다항식 평가값의 상한
MAX_VALUE = 1 << 16


def init_pcs_bp(db):
    """app.py에서 DB를 주입받는다."""
    global DB
    DB = db


# ─── DB 헬퍼 ───

def db_get(key):
    """DB에서 키로 데이터를 조회한다."""
    result = DB.search(DATA.type == key)
    if not result:
        return None
    return result[0].get("data")


def db_set(key, data):
    """DB에 키로 데이터를 저장한다."""
    DB.upsert({"type": key, "data": data}, DATA.type == key)


def db_remove_prefix(prefix):
    """prefix로 시작하는 모든 키를 삭제한다."""
    DB.remove(DATA.type.test(lambda t: t.startswith(prefix)))


def _error(message, status):
    return jsonify({"error": message}), status


def _load_polynomials():
    setup = db_get("pcs.setup")
    if setup is None:
        return None
    return BatchedPolynomials(deserialize_polys(setup["polys"]))


@pcs_bp.errorhandler(ShapeMismatchError)
def handle_shape_mismatch(err):
    return _error(str(err), 400)


@pcs_bp.errorhandler(MalformedEncodingError)
def handle_malformed(err):
    return _error(str(err), 400)


# ──────────────────────────────────────────────────────────────
# Setup
# ──────────────────────────────────────────────────────────────

@pcs_bp.route("/setup", methods=["POST"])
def setup():
    """seed에서 다항식 묶음을 만들고 이후 단계의 결과를 지운다."""
    body = request.get_json(silent=True) or {}
    num_vars = int(body.get("num_vars", 3))
    num_polys = int(body.get("num_polys", 4))
    seed = int(body.get("seed", 0))
    if num_vars < 0 or num_polys < 1:
        return _error("num_vars >= 0, num_polys >= 1 이어야 합니다", 400)

    rng = random.Random(seed)
    polys = [
        DensePolynomial([rng.randrange(MAX_VALUE) for _ in range(1 << num_vars)])
        for _ in range(num_polys)
    ]
    batch = BatchedPolynomials(polys)
    generators = batch.generators()

    db_remove_prefix("pcs.")
    db_set("pcs.setup", {
        "num_vars": num_vars,
        "num_polys": num_polys,
        "seed": seed,
        "generators": len(generators),
        "polys": serialize_polys(polys),
    })
    logger.info("setup: %d polynomials, %d variables", num_polys, num_vars)
    return jsonify({
        "num_vars": num_vars,
        "num_polys": num_polys,
        "generators": len(generators),
        "polys": serialize_polys(polys),
    })


# ──────────────────────────────────────────────────────────────
# Commit
# ──────────────────────────────────────────────────────────────

@pcs_bp.route("/commit", methods=["POST"])
def commit():
    batch = _load_polynomials()
    if batch is None:
        return _error("setup을 먼저 실행하세요", 409)
    commitment = batch.commit(batch.generators())
    db_set("pcs.commit", serialize_commitment(commitment))
    db_set("pcs.commit.rows", [serialize_g1(p) for p in commitment.row_commitments])
    return jsonify({
        "rows": len(commitment.row_commitments),
        "row_commitments": [g1_short(p) for p in commitment.row_commitments],
        "commitment": serialize_commitment(commitment),
    })


# ──────────────────────────────────────────────────────────────
# Open / Prove
# ──────────────────────────────────────────────────────────────

@pcs_bp.route("/open", methods=["POST"])
def open_point():
    batch = _load_polynomials()
    if batch is None:
        return _error("setup을 먼저 실행하세요", 409)
    body = request.get_json(silent=True) or {}
    if "point" not in body:
        return _error("point가 필요합니다", 400)
    point = deserialize_fr_list(body["point"])

    openings = BatchedOpenings.open(batch, point)
    db_set("pcs.open.point", serialize_fr_list(point))
    db_set("pcs.open.values", serialize_openings(openings))
    db_remove_prefix("pcs.prove")
    return jsonify({
        "point": serialize_fr_list(point),
        "values": serialize_fr_list(openings.values),
    })


@pcs_bp.route("/prove", methods=["POST"])
def prove():
    batch = _load_polynomials()
    point_data = db_get("pcs.open.point")
    values_hex = db_get("pcs.open.values")
    if batch is None or point_data is None or values_hex is None:
        return _error("setup과 open을 먼저 실행하세요", 409)

    point = deserialize_fr_list(point_data)
    openings = deserialize_openings(values_hex)
    commitment_hex = db_get("pcs.commit")
    commitment = deserialize_commitment(commitment_hex) if commitment_hex else None
    transcript = ProofTranscript(TRANSCRIPT_LABEL)
    proof = BatchedOpenings.prove_openings(
        batch, point, openings, transcript, batch.generators(), commitment
    )
    proof_hex = serialize_proof(proof)
    db_set("pcs.prove.proof", proof_hex)
    return jsonify({
        "proof": proof_hex,
        "proof_bytes": len(proof_hex) // 2,
        "rounds": len(proof.ipa.L_vec),
        "a_final": fr_short(proof.ipa.a_final),
    })


# ──────────────────────────────────────────────────────────────
# Verify
# ──────────────────────────────────────────────────────────────

@pcs_bp.route("/verify", methods=["POST"])
def verify():
    """저장된 증명을 검증한다.

    point/values를 넘기면 저장된 값 대신 사용한다 (조작 실험용).
    """
    batch = _load_polynomials()
    commitment_hex = db_get("pcs.commit")
    point_data = db_get("pcs.open.point")
    values_hex = db_get("pcs.open.values")
    proof_hex = db_get("pcs.prove.proof")
    if None in (batch, commitment_hex, point_data, values_hex, proof_hex):
        return _error("setup, commit, open, prove를 먼저 실행하세요", 409)

    body = request.get_json(silent=True) or {}
    point = deserialize_fr_list(body.get("point", point_data))
    openings = deserialize_openings(values_hex)
    if "values" in body:
        openings = BatchedOpenings(deserialize_fr_list(body["values"]))

    commitment = deserialize_commitment(commitment_hex)
    proof = deserialize_proof(proof_hex)
    transcript = ProofTranscript(TRANSCRIPT_LABEL)
    try:
        openings.verify_openings(batch.generators(), proof, commitment, point, transcript)
    except ProofVerifyError as err:
        logger.info("verification rejected: %s", err)
        return jsonify({"verified": False, "error": str(err)})
    return jsonify({"verified": True, "error": None})


@pcs_bp.route("/state")
def state():
    """저장된 각 단계의 결과."""
    return jsonify({
        "setup": db_get("pcs.setup"),
        "commit": db_get("pcs.commit"),
        "commit_rows": db_get("pcs.commit.rows"),
        "point": db_get("pcs.open.point"),
        "values": db_get("pcs.open.values"),
        "proof": db_get("pcs.prove.proof"),
    })


@pcs_bp.route("/reset", methods=["POST"])
def reset():
    db_remove_prefix("pcs.")
    return jsonify({"reset": True})
