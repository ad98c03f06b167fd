"""
여러 구조화 열기 검사의 집계
============================

외부 증명은 여러 묶음의 열기 검사를 하나의 트랜스크립트 위에서 순서대로
수행한다. 집계 정책은 fail-fast: 프로토콜 순서대로 검사하다가 첫 번째
ProofVerifyError를 그대로 올려 보낸다. 뒤의 검사는 앞의 검사가 만든
트랜스크립트 상태에 의존하므로 실패 이후의 검사는 의미가 없다.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from zkpcs.hyrax.errors import ProofVerifyError

logger = logging.getLogger(__name__)


@dataclass
class OpeningCheck:
    """verify_openings 한 번에 필요한 입력."""

    name: str
    openings: Any
    proof: Any
    commitment: Any
    opening_point: Sequence
    preprocessing: Optional[Any] = None


def verify_all(generators, checks, transcript):
    """checks를 순서대로 검증한다. 첫 실패에서 ProofVerifyError를 던진다.

    preprocessing이 주어진 검사는 verify_openings 전에
    compute_verifier_openings를 호출한다.
    """
    for index, check in enumerate(checks):
        if check.preprocessing is not None:
            check.openings.compute_verifier_openings(check.preprocessing, check.opening_point)
        try:
            check.openings.verify_openings(
                generators, check.proof, check.commitment, check.opening_point, transcript
            )
        except ProofVerifyError:
            logger.warning("opening check %d (%s) rejected", index, check.name)
            raise
        logger.debug("opening check %d (%s) verified", index, check.name)
