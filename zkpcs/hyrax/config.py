"""
실행 설정
=========

환경 변수에서 한 번 읽어 들이는 모듈 수준 설정.

  ZKPCS_WORKERS           행/다항식 단위 작업의 워커 수 (기본 1 = 순차 실행)
  ZKPCS_TRANSCRIPT_LABEL  트랜스크립트 도메인 분리 레이블
  ZKPCS_GENERATORS_LABEL  Pedersen 생성자 유도 레이블
  ZKPCS_LOG_LEVEL         로깅 레벨 (app.py에서 사용)

**병렬 처리와 트랜스크립트**:
  커밋/평가는 불변 입력의 순수 함수이므로 워커 풀에서 돌려도 된다.
  parallel_map은 결과를 항상 입력 순서대로 돌려주며, 트랜스크립트에는
  모든 결과가 합쳐진 뒤에만 프로토콜 순서대로 기록한다.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    workers: int = 1
    transcript_label: bytes = b"zkpcs"
    generators_label: bytes = b"zkpcs pedersen"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        workers = int(env.get("ZKPCS_WORKERS", "1"))
        if workers < 1:
            raise ValueError(f"ZKPCS_WORKERS는 1 이상이어야 합니다: {workers}")
        return cls(
            workers=workers,
            transcript_label=env.get("ZKPCS_TRANSCRIPT_LABEL", "zkpcs").encode(),
            generators_label=env.get("ZKPCS_GENERATORS_LABEL", "zkpcs pedersen").encode(),
            log_level=env.get("ZKPCS_LOG_LEVEL", "INFO").upper(),
        )


SETTINGS = Settings.from_env()


def parallel_map(fn, items, workers=None):
    """fn을 items에 적용한 결과를 입력 순서대로 리스트로 돌려준다.

    workers가 1이면 호출 스레드에서 순차 실행한다.
    """
    items = list(items)
    workers = SETTINGS.workers if workers is None else workers
    if workers <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(fn, items))
