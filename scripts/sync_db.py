"""Mirror the JSON ledger into the DuckDB predictions table and report counts."""

from honeybot.services.ledger import PredictionLedger
from honeybot.services.sync_service import SyncService


def main():
    service = SyncService()
    counts = service.sync(PredictionLedger())
    print("=" * 50)
    print("  HONEY INDEX — DB SYNC")
    print("=" * 50)
    for status, count in counts.items():
        print(f"  {status:12s}  {count:>6} upserted")
    print(f"  {'total rows':12s}  {service.count():>6}")
    print()


if __name__ == "__main__":
    main()
