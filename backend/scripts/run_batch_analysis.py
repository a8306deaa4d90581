#!/usr/bin/env python3
"""
배치 분석 실행 스크립트

API를 거치지 않고 미분석 기사를 직접 분석합니다 (GEMINI_API_KEY 필요).

사용법:
    python backend/scripts/run_batch_analysis.py            # 기본 10건
    python backend/scripts/run_batch_analysis.py --limit 50
"""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.db.session import engine  # noqa: E402
from app.services.analysis_scheduler import analysis_scheduler  # noqa: E402
from app.services.token_taximeter import token_taximeter  # noqa: E402


async def main(limit: int) -> int:
    try:
        outcome = await analysis_scheduler.analyze_batch(limit)
        stats = await analysis_scheduler.get_stats()
    finally:
        await engine.dispose()

    print("=" * 60)
    print(f" 처리 {outcome.processed}건 | 성공 {outcome.successful} | 실패 {outcome.failed}")
    for failure in outcome.failures:
        print(f"   ✗ {failure.article_id}: {failure.reason}")

    usage = token_taximeter.snapshot()
    print(f" 토큰 {usage.total_tokens} (입력 {usage.prompt_tokens} / 출력 {usage.completion_tokens})")
    print(f" 예상 비용 €{usage.cost_eur:.6f}")
    print("=" * 60)

    print(f" 분석 진행률 {stats.percent_analyzed}% ({stats.analyzed}/{stats.total})")
    return 0 if outcome.failed == 0 else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="미분석 기사 배치 분석")
    parser.add_argument("--limit", type=int, default=10, help="분석할 최대 기사 수 (1~100)")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.limit)))
