#!/usr/bin/env python3
"""
Basic npmtraffic usage example.

Runs offline against mock clients by default. Pass --live to query the
real npm API.
Run with: python examples/basic_usage.py [--live]
"""

import logging
import sys

from npmtraffic import (
    InvalidRequestError,
    NpmTrafficClient,
    NpmTrafficError,
    TrafficService,
    TwoTierCache,
    assemble_compare_data,
    configure_logging,
)
from npmtraffic.testing import FakeClock, MockDownloadsClient

print("=== npmtraffic Basic Usage Example ===\n")

# 1. Exception hierarchy
print("1. Testing exception classes...")
try:
    raise InvalidRequestError("Invalid package name")
except NpmTrafficError as e:
    print(f"   Caught NpmTrafficError: {e}")
    print(f"   Code: {e.code}, HTTP status: {e.status}")

print("\n   OK: Exception classes working\n")

# 2. Traffic over a mock downloads client
print("2. Fetching traffic from a mock downloads client...")
clock = FakeClock()
downloads = MockDownloadsClient()
downloads.configure("react", values=[120, 95, 130, 110, 400, 105, 98])
downloads.configure("vue", values=[40, 42, 38, 45, 41, 39, 44])
service = TrafficService(downloads, TwoTierCache(clock=clock.time), now=clock.now)

react = service.fetch_traffic("react", 7)
print(f"   Range: {react.range.start_date} .. {react.range.end_date}")
print(f"   Total: {react.totals.sum}, avg/day: {react.totals.avg_per_day}")
print(f"   Cache: {react.meta.cache_status}")
print(f"   Outlier days: {[o.date for o in react.derived.outliers if o.is_outlier]}")

again = service.fetch_traffic("react", 7)
assert again.meta.cache_status == "HIT", "Second read should hit the cache"
print("   Second read: HIT")

print("\n   OK: Traffic service working\n")

# 3. Compare
print("3. Comparing packages...")
vue = service.fetch_traffic("vue", 7)
data = assemble_compare_data([("react", react), ("vue", vue)], 7)
for pkg in data.packages:
    print(f"   {pkg.name}: {pkg.total} downloads, {pkg.share}% share")

print("\n   OK: Compare working\n")

# 4. Live npm API
if "--live" in sys.argv:
    print("4. Querying the live npm API...")
    configure_logging(level=logging.INFO, http_level=logging.DEBUG)
    with NpmTrafficClient.from_env() as client:
        live = client.fetch_traffic("react", 30)
        print(f"   react, last 30 days: {live.totals.sum} downloads")
        compare = client.compare(["react", "vue", "svelte"], 30)
        for pkg in compare.packages:
            print(f"   {pkg.name}: {pkg.share}%")
        print(f"   Status: {client.status().health}")
    print("\n   OK: Live client working\n")

print("=== All examples completed ===")
