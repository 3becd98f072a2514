"""Run one collection pass — fetch, classify, resolve, recover, aggregate.

Usage:
    python -m scripts.collect            # last COLLECT_DAYS days
    python -m scripts.collect --days 7
    python -m scripts.collect --no-recover
"""

import argparse
import asyncio
import sys

from honeybot.config import ConfigurationError, settings
from honeybot.services.pipeline_service import PipelineService


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Honey index collection run")
    parser.add_argument("--days", type=int, default=settings.COLLECT_DAYS)
    parser.add_argument("--no-recover", action="store_true",
                        help="skip the recovery pass over older records")
    args = parser.parse_args(argv)

    try:
        summary = asyncio.run(
            PipelineService().run(args.days, recover=not args.no_recover)
        )
    except ConfigurationError as e:
        print(f"❌ {e}")
        return 2

    print("=" * 50)
    print("  HONEY INDEX — COLLECTION RUN")
    print("=" * 50)
    print(f"  videos          {summary.videos:>6}")
    print(f"  predictions     {summary.predictions:>6}")
    print(f"  already done    {summary.skipped_existing:>6}")
    print(f"  resolved        {summary.resolved:>6}")
    print(f"  pending         {summary.pending:>6}")
    print(f"  failed          {summary.failed:>6}")
    print(f"  recovered       {summary.recovered:>6}")
    for reason, count in sorted(summary.reasons.items()):
        print(f"    {reason:18s}{count:>4}")
    print(f"  honey index     {summary.honey_index:>6.1f}%")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(main())
