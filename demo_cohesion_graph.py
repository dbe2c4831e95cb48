#!/usr/bin/env python3
"""
Cohesion Graph Demo Script

This script walks a small class through the whole pipeline: member graph
construction, population of an in-memory store, community detection and
ranking of extract-class candidates.
"""

import asyncio

from src.cohesion_graph.analyzer import ExtractClassAnalyzer
from src.cohesion_graph.logger import set_log_level
from src.cohesion_graph.report import render_text
from src.cohesion_graph.store import InMemoryGraphStore


SAMPLE_CODE = '''
class Calculator:
    n: int = 0
    s: str = ""

    def crossCall(self, k):
        return self.multiply(k)

    def accessBoth(self):
        return f"{self.s}{self.n}"

    def multiply(self, k):
        return self.n * k

    def squared(self):
        return self.n ** 2

    def greet(self):
        return "Hello " + self.s

    def greetFormally(self):
        return "Dear " + self.s
'''


async def run_demo():
    analyzer = ExtractClassAnalyzer()
    store = InMemoryGraphStore()

    report = await analyzer.analyze_source(store, SAMPLE_CODE, "sample.py")
    print(render_text(report))

    stats = await store.statistics()
    print(f"\n📊 Graph: {stats['total_nodes']} nodes, {stats['total_edges']} edges")
    print(f"   Node labels: {stats['node_labels']}")
    print(f"   Edge types: {stats['edge_types']}")

    # Re-running must not change the graph
    await analyzer.analyze_source(store, SAMPLE_CODE, "sample.py")
    rerun = await store.statistics()
    print(f"🔁 After re-run: {rerun['total_nodes']} nodes, {rerun['total_edges']} edges")


def main():
    """Run the cohesion graph demonstration."""
    print("🚀 Cohesion Graph Demo")
    print("=" * 50)
    set_log_level("WARNING")
    asyncio.run(run_demo())


if __name__ == "__main__":
    main()
