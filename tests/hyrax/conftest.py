import random

import pytest

from zkpcs.hyrax.field import FR
from zkpcs.hyrax.multilinear import DensePolynomial
from zkpcs.hyrax.transcript import ProofTranscript


def random_poly(rng, num_vars, bound=1 << 16):
    """Small random evaluations keep the failure messages readable."""
    return DensePolynomial([rng.randrange(bound) for _ in range(1 << num_vars)])


def random_point(rng, num_vars):
    return [FR(rng.randrange(1, 1 << 32)) for _ in range(num_vars)]


@pytest.fixture
def rng():
    return random.Random(2024)


@pytest.fixture
def transcripts():
    """Prover and verifier transcripts seeded identically."""
    return ProofTranscript(b"test"), ProofTranscript(b"test")


@pytest.fixture(scope="session")
def make_poly():
    return random_poly


@pytest.fixture(scope="session")
def make_point():
    return random_point
