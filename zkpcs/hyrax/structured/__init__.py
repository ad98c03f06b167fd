"""
구조화 묶음 (Structured groups)
================================

  BatchedPolynomials / BatchedOpenings
      임의의 다항식 묶음. 모든 값을 Prover가 증명한다.

  InitFinalPolynomials / InitFinalOpenings / InitFinalPreprocessing
      메모리 검사 묶음. 일부 값은 Verifier가 스스로 계산한다.

  verify_all / OpeningCheck
      여러 열기 검사의 fail-fast 집계.

사용 예시:
    >>> polys = BatchedPolynomials([p0, p1, p2, p3])
    >>> gens = polys.generators()
    >>> commitment = polys.commit(gens)
    >>> openings = BatchedOpenings.open(polys, point)
    >>> proof = BatchedOpenings.prove_openings(polys, point, openings, prover_transcript)
    >>> BatchedOpenings.from_bytes(openings.to_bytes()).verify_openings(
    ...     gens, proof, commitment, point, verifier_transcript)
"""

from zkpcs.hyrax.structured.batched import BatchedOpenings, BatchedPolynomials
from zkpcs.hyrax.structured.init_final import (
    InitFinalOpenings,
    InitFinalPolynomials,
    InitFinalPreprocessing,
)
from zkpcs.hyrax.structured.aggregate import OpeningCheck, verify_all
