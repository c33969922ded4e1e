import argparse
import json
import sys

from livetrack.config import get_settings
from livetrack.models import Rejection
from livetrack.services.classifier import classify
from livetrack.services.pipeline import ResolutionPipeline


def run_check(tracking_number: str, pipeline: ResolutionPipeline) -> int:
    print(f"--- VERIFYING {tracking_number} ---")

    result = classify(tracking_number)
    if isinstance(result, Rejection):
        print(f"[Fail] Rejected: {result.reason} (hoax={result.hoax_detected})")
        return 1

    print(f"[Classifier] {result.carrier_name or 'Unknown Carrier'} @ {result.confidence}%")
    configured = [b.name for b in pipeline.configured_backends] or ["none"]
    print(f"[Pipeline] configured backends: {', '.join(configured)}")

    record = pipeline.resolve(result.tracking_number, match=result)
    print(f"\n[Pass] Resolved via {record.source}:")
    print(json.dumps(record.model_dump(mode="json", by_alias=True), indent=2))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Classify and resolve a tracking number.")
    parser.add_argument("tracking_number")
    args = parser.parse_args(argv)
    return run_check(args.tracking_number, ResolutionPipeline.from_settings(get_settings()))


if __name__ == "__main__":
    sys.exit(main())
