"""
Tests for structured groups (BatchedPolynomials / InitFinalPolynomials).

Covers:
- the 4 x 3-variable batched scenario: verify at r, reject at r'
- tamper sensitivity: proof bytes, commitment bytes, claimed values, point
- shape errors raised before any field or group arithmetic
- verifier-computed openings for the init/final memory-checking group
- the default no-op compute_verifier_openings
- fail-fast aggregation with verify_all
"""

import random

import pytest

from zkpcs.hyrax.commitment import HyraxCommitment, HyraxConfig, HyraxOpeningProof
from zkpcs.hyrax.errors import (
    InvalidOpeningProof,
    MalformedEncodingError,
    MismatchedVerifierOpening,
    ProofVerifyError,
    ShapeMismatchError,
)
from zkpcs.hyrax.field import FR
from zkpcs.hyrax.multilinear import DensePolynomial, EqPolynomial, IdentityPolynomial
from zkpcs.hyrax.scheme import NoPreprocessing, StructuredOpeningProof
from zkpcs.hyrax.structured import (
    BatchedOpenings,
    BatchedPolynomials,
    InitFinalOpenings,
    InitFinalPolynomials,
    InitFinalPreprocessing,
    OpeningCheck,
    verify_all,
)
from zkpcs.hyrax.structured.batched import combine_claims
from zkpcs.hyrax.transcript import ProofTranscript


LABEL = b"structured test"


def flip(data, index):
    data = bytearray(data)
    data[index] ^= 0x01
    return bytes(data)


# ─────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="module")
def batch(make_poly, make_point):
    """4개 다항식 × 3변수 묶음을 한 번 커밋하고 증명해 둔다."""
    rng = random.Random(31)
    polys = BatchedPolynomials([make_poly(rng, 3) for _ in range(4)])
    point = make_point(rng, 3)
    gens = polys.generators()
    commitment = polys.commit(gens)
    openings = BatchedOpenings.open(polys, point)
    proof = BatchedOpenings.prove_openings(polys, point, openings, ProofTranscript(LABEL))
    return {
        "polys": polys,
        "point": point,
        "gens": gens,
        "commitment": commitment,
        "openings": openings,
        "proof": proof,
    }


def verify_batch(case, openings=None, proof=None, commitment=None, point=None):
    """Verifier 쪽은 바이트에서 다시 만든 객체만 사용한다."""
    openings = BatchedOpenings.from_bytes((openings or case["openings"]).to_bytes())
    proof = HyraxOpeningProof.from_bytes((proof or case["proof"]).to_bytes())
    commitment = HyraxCommitment.from_bytes((commitment or case["commitment"]).to_bytes())
    openings.verify_openings(
        case["gens"],
        proof,
        commitment,
        case["point"] if point is None else point,
        ProofTranscript(LABEL),
    )


@pytest.fixture(scope="module")
def init_final(make_poly, make_point):
    """메모리 2개, 셀 4개 (2변수) 의 init/final 묶음."""
    rng = random.Random(47)
    preprocessing = InitFinalPreprocessing([make_poly(rng, 2) for _ in range(2)])
    polys = InitFinalPolynomials([make_poly(rng, 2) for _ in range(2)], preprocessing)
    point = make_point(rng, 2)
    gens = polys.generators()
    commitment = polys.commit(gens)
    openings = InitFinalOpenings.open(polys, point)
    proof = InitFinalOpenings.prove_openings(polys, point, openings, ProofTranscript(LABEL))
    return {
        "preprocessing": preprocessing,
        "polys": polys,
        "point": point,
        "gens": gens,
        "commitment": commitment,
        "openings": openings,
        "proof": proof,
    }


def verify_init_final(case, openings, point=None):
    point = case["point"] if point is None else point
    openings.compute_verifier_openings(case["preprocessing"], point)
    openings.verify_openings(
        case["gens"], case["proof"], case["commitment"], point, ProofTranscript(LABEL)
    )


# ─────────────────────────────────────────────────────────────────────
# BatchedPolynomials
# ─────────────────────────────────────────────────────────────────────

class TestBatchedPolynomials:
    """묶음 구성과 커밋 테스트."""

    def test_shape(self, batch):
        polys = batch["polys"]
        assert len(polys) == 4
        assert polys.num_vars == 3
        assert polys.selector_vars == 2
        assert polys.joint_num_vars == 5

    def test_single_commitment(self, batch):
        # 5 joint vars → 2^2 rows
        assert len(batch["commitment"].row_commitments) == 4

    def test_commit_deterministic(self, batch):
        again = batch["polys"].commit(batch["gens"])
        assert again.to_bytes() == batch["commitment"].to_bytes()

    def test_commit_does_not_mutate(self, batch):
        before = [list(p.evals) for p in batch["polys"]]
        batch["polys"].commit(batch["gens"])
        assert [p.evals for p in batch["polys"]] == before

    def test_scheme_type(self):
        assert BatchedPolynomials.scheme is HyraxConfig

    def test_equals_commitment_of_joint_polynomial(self, batch):
        joint = batch["polys"].joint_polynomial()
        commitment = HyraxConfig(joint).commit(batch["gens"])
        assert commitment.row_commitments == batch["commitment"].row_commitments

    def test_commitment_records_group_shape(self, batch, init_final):
        assert batch["commitment"].num_vars == 5
        assert batch["commitment"].batch_size == 4
        assert init_final["commitment"].batch_size == 2

    def test_mixed_num_vars_rejected(self):
        with pytest.raises(ShapeMismatchError):
            BatchedPolynomials([[1, 2], [1, 2, 3, 4]])

    def test_empty_rejected(self):
        with pytest.raises(ShapeMismatchError):
            BatchedPolynomials([])


# ─────────────────────────────────────────────────────────────────────
# BatchedOpenings
# ─────────────────────────────────────────────────────────────────────

class TestBatchedOpenings:
    """묶음 열기/증명/검증 테스트."""

    def test_open_matches_individual_evaluations(self, batch):
        expected = [p.evaluate(batch["point"]) for p in batch["polys"]]
        assert batch["openings"].values == expected

    def test_open_order_follows_group(self, batch):
        values = batch["openings"].values
        assert values[2] == batch["polys"].polys[2].evaluate(batch["point"])

    def test_honest_proof_verifies(self, batch):
        verify_batch(batch)

    def test_other_point_rejected(self, batch):
        # r' = [a, b, c'] with the same claimed values
        point = list(batch["point"])
        point[2] = point[2] + FR(1)
        with pytest.raises(ProofVerifyError):
            verify_batch(batch, point=point)

    @pytest.mark.parametrize("index", [0, 3])
    def test_wrong_claim_rejected(self, batch, index):
        values = list(batch["openings"].values)
        values[index] = values[index] + FR(1)
        with pytest.raises(ProofVerifyError):
            verify_batch(batch, openings=BatchedOpenings(values))

    def test_swapped_claims_rejected(self, batch):
        values = list(batch["openings"].values)
        values[0], values[1] = values[1], values[0]
        with pytest.raises(ProofVerifyError):
            verify_batch(batch, openings=BatchedOpenings(values))

    def test_claim_count_mismatch_rejected(self, batch):
        values = batch["openings"].values[:2]
        with pytest.raises(InvalidOpeningProof):
            verify_batch(batch, openings=BatchedOpenings(values))

    def test_empty_claims_bytes_rejected(self):
        with pytest.raises(MalformedEncodingError):
            BatchedOpenings.from_bytes(BatchedOpenings([]).to_bytes())
        with pytest.raises(MalformedEncodingError):
            InitFinalOpenings.from_bytes(InitFinalOpenings([]).to_bytes())

    def test_selector_binds_commitment(self):
        # s drawn from the claims alone lets a prover commit
        # P₀ = v₀ + 1 and P₁ = v₁ − (1 − s)/s, whose errors cancel in
        # (1 − s)·P₀ + s·P₁.
        claims = [FR(3), FR(8)]
        early = ProofTranscript(LABEL)
        early.append_message(b"protocol", b"structured opening")
        early.append_scalars(b"claimed_openings", claims)
        (s,) = early.challenge_vector(b"batch_selector", 1)

        forged = BatchedPolynomials([
            [claims[0] + FR(1)] * 2,
            [claims[1] - (FR(1) - s) / s] * 2,
        ])
        point = [FR(6)]
        gens = forged.generators()
        commitment = forged.commit(gens)
        openings = BatchedOpenings(claims)
        proof = BatchedOpenings.prove_openings(
            forged, point, openings, ProofTranscript(LABEL), gens
        )
        with pytest.raises(ProofVerifyError):
            openings.verify_openings(gens, proof, commitment, point, ProofTranscript(LABEL))

    def test_supplied_commitment(self, batch):
        proof = BatchedOpenings.prove_openings(
            batch["polys"], batch["point"], batch["openings"], ProofTranscript(LABEL),
            batch["gens"], batch["commitment"],
        )
        assert proof.to_bytes() == batch["proof"].to_bytes()

    def test_supplied_commitment_shape(self, batch, init_final):
        with pytest.raises(ShapeMismatchError):
            BatchedOpenings.prove_openings(
                batch["polys"], batch["point"], batch["openings"], ProofTranscript(LABEL),
                batch["gens"], init_final["commitment"],
            )

    @pytest.mark.parametrize("offset", [1, 70, -1])
    def test_proof_bytes_tampered(self, batch, offset):
        data = batch["proof"].to_bytes()
        index = offset % len(data)
        with pytest.raises((ProofVerifyError, MalformedEncodingError)):
            verify_batch(batch, proof=HyraxOpeningProof.from_bytes(flip(data, index)))

    @pytest.mark.parametrize("offset", [35, -1])
    def test_commitment_bytes_tampered(self, batch, offset):
        data = batch["commitment"].to_bytes()
        index = offset % len(data)
        with pytest.raises((ProofVerifyError, MalformedEncodingError)):
            verify_batch(batch, commitment=HyraxCommitment.from_bytes(flip(data, index)))

    def test_other_commitment_rejected(self, batch):
        values = [list(p.evals) for p in batch["polys"]]
        values[1][0] = values[1][0] + FR(1)
        other = BatchedPolynomials(values).commit(batch["gens"])
        with pytest.raises(ProofVerifyError):
            verify_batch(batch, commitment=other)

    def test_transcript_label_matters(self, batch):
        with pytest.raises(ProofVerifyError):
            batch["openings"].verify_openings(
                batch["gens"], batch["proof"], batch["commitment"], batch["point"],
                ProofTranscript(b"another session"),
            )

    def test_openings_bytes(self, batch):
        data = batch["openings"].to_bytes()
        assert len(data) == 4 + 4 * 32
        assert BatchedOpenings.from_bytes(data) == batch["openings"]

    def test_openings_bytes_trailing(self, batch):
        with pytest.raises(MalformedEncodingError):
            BatchedOpenings.from_bytes(batch["openings"].to_bytes() + b"\x00")

    def test_combine_claims(self):
        selector = [FR(3), FR(5)]
        values = [FR(1), FR(2), FR(3), FR(4)]
        weights = EqPolynomial(selector).evals()
        assert combine_claims(selector, values) == sum(
            (w * v for w, v in zip(weights, values)), FR(0)
        )

    def test_explicit_generators(self, batch):
        gens = batch["polys"].generators(b"explicit")
        commitment = batch["polys"].commit(gens)
        proof = BatchedOpenings.prove_openings(
            batch["polys"], batch["point"], batch["openings"], ProofTranscript(LABEL), gens
        )
        batch["openings"].verify_openings(
            gens, proof, commitment, batch["point"], ProofTranscript(LABEL)
        )


class TestNonPowerOfTwoGroup:
    """다항식 개수가 2의 거듭제곱이 아닌 묶음."""

    def test_three_polynomials(self, make_poly, make_point):
        rng = random.Random(5)
        polys = BatchedPolynomials([make_poly(rng, 1) for _ in range(3)])
        assert polys.selector_vars == 2
        point = make_point(rng, 1)
        gens = polys.generators()
        commitment = polys.commit(gens)
        openings = BatchedOpenings.open(polys, point)
        proof = BatchedOpenings.prove_openings(polys, point, openings, ProofTranscript(LABEL))
        openings.verify_openings(gens, proof, commitment, point, ProofTranscript(LABEL))

    def test_single_polynomial(self):
        polys = BatchedPolynomials([[4, 7]])
        assert polys.selector_vars == 0
        point = [FR(9)]
        gens = polys.generators()
        commitment = polys.commit(gens)
        openings = BatchedOpenings.open(polys, point)
        assert openings.values == [FR(4) + FR(9) * (FR(7) - FR(4))]
        proof = BatchedOpenings.prove_openings(polys, point, openings, ProofTranscript(LABEL))
        openings.verify_openings(gens, proof, commitment, point, ProofTranscript(LABEL))


# ─────────────────────────────────────────────────────────────────────
# Shape errors
# ─────────────────────────────────────────────────────────────────────

class TestShapeGuards:
    """모양 검사는 산술보다 먼저 일어나야 한다."""

    @pytest.fixture
    def no_arithmetic(self, monkeypatch):
        def boom(*args, **kwargs):
            raise AssertionError("arithmetic ran before the shape check")
        monkeypatch.setattr(EqPolynomial, "evals", boom)
        monkeypatch.setattr(DensePolynomial, "evaluate", boom)
        monkeypatch.setattr(IdentityPolynomial, "evaluate", boom)

    def test_open_short_point(self, batch, no_arithmetic):
        with pytest.raises(ShapeMismatchError):
            BatchedOpenings.open(batch["polys"], batch["point"][:2])

    def test_prove_long_point(self, batch, no_arithmetic):
        with pytest.raises(ShapeMismatchError):
            BatchedOpenings.prove_openings(
                batch["polys"], batch["point"] + [FR(1)], batch["openings"], ProofTranscript()
            )

    def test_prove_value_count(self, batch, no_arithmetic):
        with pytest.raises(ShapeMismatchError):
            BatchedOpenings.prove_openings(
                batch["polys"], batch["point"], BatchedOpenings([1, 2]), ProofTranscript()
            )

    @pytest.mark.parametrize("length", [1, 2])
    def test_verify_short_point(self, batch, no_arithmetic, length):
        with pytest.raises(ShapeMismatchError):
            batch["openings"].verify_openings(
                batch["gens"], batch["proof"], batch["commitment"], batch["point"][:length],
                ProofTranscript(LABEL),
            )

    @pytest.mark.parametrize("count", [3, 5])
    def test_verify_claim_count(self, batch, no_arithmetic, count):
        values = (batch["openings"].values * 2)[:count]
        with pytest.raises(InvalidOpeningProof):
            BatchedOpenings(values).verify_openings(
                batch["gens"], batch["proof"], batch["commitment"], batch["point"],
                ProofTranscript(LABEL),
            )

    def test_combine_claims_too_many(self):
        with pytest.raises(ShapeMismatchError):
            combine_claims([FR(2)], [FR(1), FR(2), FR(3)])

    def test_init_final_open_short_point(self, init_final, no_arithmetic):
        with pytest.raises(ShapeMismatchError):
            InitFinalOpenings.open(init_final["polys"], init_final["point"][:1])


# ─────────────────────────────────────────────────────────────────────
# InitFinal
# ─────────────────────────────────────────────────────────────────────

class TestInitFinalPreprocessing:
    """InitFinalPreprocessing 테스트."""

    def test_evaluate(self, init_final):
        point = init_final["point"]
        a, v = init_final["preprocessing"].evaluate(point)
        assert a == IdentityPolynomial(2).evaluate(point)
        assert v == [t.evaluate(point) for t in init_final["preprocessing"].tables]

    def test_identity_on_hypercube(self):
        preprocessing = InitFinalPreprocessing([[0, 0, 0, 0]])
        a, _ = preprocessing.evaluate([FR(1), FR(0)])
        assert a == FR(2)

    def test_mixed_tables_rejected(self):
        with pytest.raises(ShapeMismatchError):
            InitFinalPreprocessing([[1, 2], [1, 2, 3, 4]])

    def test_group_shape_must_match(self):
        preprocessing = InitFinalPreprocessing([[1, 2, 3, 4]])
        with pytest.raises(ShapeMismatchError):
            InitFinalPolynomials([[1, 2]], preprocessing)
        with pytest.raises(ShapeMismatchError):
            InitFinalPolynomials([[1, 2, 3, 4], [5, 6, 7, 8]], preprocessing)


class TestInitFinalOpenings:
    """Verifier가 계산하는 값이 있는 묶음 테스트."""

    def test_open_fills_all_values(self, init_final):
        openings = init_final["openings"]
        a, v = init_final["preprocessing"].evaluate(init_final["point"])
        assert openings.a_init_final == a
        assert openings.v_init_final == v
        assert openings.final == [p.evaluate(init_final["point"]) for p in init_final["polys"]]

    def test_only_final_cts_committed(self, init_final):
        polys = init_final["polys"]
        assert polys.final_cts == polys.polys
        assert init_final["commitment"] == BatchedPolynomials(polys.polys).commit(init_final["gens"])

    def test_stripped_openings_verify(self, init_final):
        stripped = init_final["openings"].without_verifier_openings()
        received = InitFinalOpenings.from_bytes(stripped.to_bytes())
        assert received.a_init_final is None
        assert received.v_init_final is None
        verify_init_final(init_final, received)
        assert received.a_init_final == init_final["openings"].a_init_final
        assert received.v_init_final == init_final["openings"].v_init_final

    def test_full_openings_verify(self, init_final):
        received = InitFinalOpenings.from_bytes(init_final["openings"].to_bytes())
        verify_init_final(init_final, received)

    def test_wrong_a_claim_rejected(self, init_final):
        openings = init_final["openings"]
        claimed = InitFinalOpenings(openings.final, openings.a_init_final + FR(1))
        with pytest.raises(MismatchedVerifierOpening) as exc:
            verify_init_final(init_final, claimed)
        assert exc.value.name == "a_init_final"

    def test_wrong_v_claim_rejected(self, init_final):
        openings = init_final["openings"]
        v = list(openings.v_init_final)
        v[1] = v[1] + FR(1)
        claimed = InitFinalOpenings(openings.final, openings.a_init_final, v)
        with pytest.raises(MismatchedVerifierOpening) as exc:
            verify_init_final(init_final, claimed)
        assert exc.value.name == "v_init_final[1]"

    def test_mismatch_is_a_verify_error(self):
        assert issubclass(MismatchedVerifierOpening, ProofVerifyError)

    def test_wrong_final_rejected(self, init_final):
        final = list(init_final["openings"].final)
        final[0] = final[0] + FR(1)
        with pytest.raises(ProofVerifyError):
            verify_init_final(init_final, InitFinalOpenings(final))

    def test_verify_without_verifier_openings(self, init_final):
        received = init_final["openings"].without_verifier_openings()
        with pytest.raises(ProofVerifyError):
            received.verify_openings(
                init_final["gens"], init_final["proof"], init_final["commitment"],
                init_final["point"], ProofTranscript(LABEL),
            )

    def test_preprocessing_type(self):
        assert InitFinalOpenings.Preprocessing is InitFinalPreprocessing

    def test_bytes_length_mismatch(self, init_final):
        openings = init_final["openings"]
        bad = InitFinalOpenings(openings.final, openings.a_init_final, openings.v_init_final[:1])
        with pytest.raises(MalformedEncodingError):
            InitFinalOpenings.from_bytes(bad.to_bytes())

    def test_bytes_equal(self, init_final):
        openings = init_final["openings"]
        assert InitFinalOpenings.from_bytes(openings.to_bytes()) == openings


# ─────────────────────────────────────────────────────────────────────
# Base contract / aggregation
# ─────────────────────────────────────────────────────────────────────

class TestContract:
    """StructuredOpeningProof 기본 동작."""

    def test_default_verifier_openings_noop(self, batch):
        openings = BatchedOpenings(batch["openings"].values)
        before = openings.to_bytes()
        assert openings.compute_verifier_openings(NoPreprocessing(), batch["point"]) is None
        assert openings.to_bytes() == before

    def test_default_preprocessing(self):
        assert BatchedOpenings.Preprocessing is NoPreprocessing
        assert BatchedOpenings.Proof is HyraxOpeningProof

    def test_abstract(self):
        with pytest.raises(TypeError):
            StructuredOpeningProof()


@pytest.fixture(scope="module")
def sessions(batch, init_final):
    """같은 트랜스크립트 위에서 두 묶음을 차례로 증명한다."""
    transcript = ProofTranscript(LABEL)
    gens = batch["gens"]
    batch_proof = BatchedOpenings.prove_openings(
        batch["polys"], batch["point"], batch["openings"], transcript, gens
    )
    init_final_proof = InitFinalOpenings.prove_openings(
        init_final["polys"], init_final["point"], init_final["openings"], transcript, gens
    )
    return batch_proof, init_final_proof


class TestVerifyAll:
    """verify_all (fail-fast) 테스트."""

    def _checks(self, batch, init_final, sessions, batch_values=None):
        batch_proof, init_final_proof = sessions
        return [
            OpeningCheck(
                "batched",
                BatchedOpenings(batch_values or batch["openings"].values),
                batch_proof,
                batch["commitment"],
                batch["point"],
            ),
            OpeningCheck(
                "init_final",
                init_final["openings"].without_verifier_openings(),
                init_final_proof,
                init_final["polys"].commit(batch["gens"]),
                init_final["point"],
                init_final["preprocessing"],
            ),
        ]

    def test_all_verify(self, batch, init_final, sessions):
        checks = self._checks(batch, init_final, sessions)
        verify_all(batch["gens"], checks, ProofTranscript(LABEL))

    def test_first_failure_stops(self, batch, init_final, sessions, monkeypatch):
        values = list(batch["openings"].values)
        values[0] = values[0] + FR(1)
        checks = self._checks(batch, init_final, sessions, values)
        calls = []
        original = InitFinalOpenings.verify_openings

        def spy(self, *args):
            calls.append(self)
            return original(self, *args)

        monkeypatch.setattr(InitFinalOpenings, "verify_openings", spy)
        with pytest.raises(ProofVerifyError):
            verify_all(batch["gens"], checks, ProofTranscript(LABEL))
        assert calls == []
