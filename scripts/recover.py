"""Retry every no_market_data record in the ledger without collecting new videos."""

import asyncio

from honeybot.services.pipeline_service import PipelineService


def main():
    summary = asyncio.run(PipelineService().recover_only())
    print("=" * 50)
    print("  HONEY INDEX — RECOVERY PASS")
    print("=" * 50)
    print(f"  processed  {summary.processed:>6}")
    print(f"  recovered  {summary.recovered:>6}")
    print(f"  failed     {summary.failed:>6}")
    print(f"  pending    {summary.pending:>6}")
    for reason, count in sorted(summary.reasons.items()):
        print(f"    {reason:18s}{count:>4}")
    print(f"  honey index {summary.honey_index:>5.1f}%")
    print()


if __name__ == "__main__":
    main()
