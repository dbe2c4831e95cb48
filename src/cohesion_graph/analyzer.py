"""Extract-class analyzer combining the builder, population, detection and ranking."""

import ast
import asyncio
import time
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from .builder import MemberGraphBuilder
from .community import CommunityDetector
from .config import CohesionGraphConfig
from .errors import ClassAnalysisError, CohesionGraphError, GraphStoreError
from .frontend import load_source, parse_source, select_classes
from .logger import get_logger
from .population import GraphPopulator
from .recommender import Recommender
from .report import (
    AnalysisReport,
    ClassReport,
    ErrorReport,
    candidate_report,
    skipped_report,
)
from .store import GraphStore, open_store


class ExtractClassAnalyzer:
    """
    Runs the full pipeline for each class: plan the member graph, populate
    the store, detect communities and rank extraction candidates.
    """

    def __init__(self, config: Optional[CohesionGraphConfig] = None):
        self.config = config or CohesionGraphConfig()
        self.logger = get_logger()
        self.builder = MemberGraphBuilder(self.config.constructor_names)
        self.detector = CommunityDetector(self.config)
        self.recommender = Recommender(self.config)
        self._performance_metrics: Dict[str, float] = {}

    def get_performance_metrics(self) -> Dict[str, float]:
        """Get performance metrics for all operations."""
        return self._performance_metrics.copy()

    async def analyze_class(self, store: GraphStore, class_def: ast.ClassDef,
                            source: str = "<string>") -> ClassReport:
        """
        Analyze one class declaration.

        Raises:
            ClassAnalysisError: If any store operation for the class fails
        """
        name = class_def.name
        timings: Dict[str, float] = {}
        self.logger.info(f"Analyzing class {name} from {source}")

        try:
            start = time.perf_counter()
            plan = self.builder.plan(class_def)
            for skipped in plan.skipped:
                self.logger.warning(
                    f"{name}.{skipped.name} ({skipped.reason}, line {skipped.line_number}) "
                    f"is out of scope; handle it manually"
                )
            timings["plan"] = time.perf_counter() - start

            start = time.perf_counter()
            population = await GraphPopulator(store).populate(plan)
            timings["populate"] = time.perf_counter() - start

            start = time.perf_counter()
            labels = await self.detector.detect(store, name)
            timings["detect"] = time.perf_counter() - start

            start = time.perf_counter()
            groups = await self.recommender.recommend(store, name)
            timings["recommend"] = time.perf_counter() - start
        except GraphStoreError as e:
            self.logger.exception(f"Analysis of class {name} failed: {e}")
            raise ClassAnalysisError(name, str(e)) from e

        for phase, elapsed in timings.items():
            self._performance_metrics[f"{name}.{phase}"] = elapsed

        self.logger.info(
            f"Class {name} completed: {len(plan.member_upserts)} members, "
            f"{len(plan.access_upserts)} access edges, {population.nodes_created} nodes and "
            f"{population.edges_created} edges created in {sum(timings.values()):.3f}s"
        )

        return ClassReport(
            class_name=name,
            source=source,
            member_count=len(plan.member_upserts),
            access_edge_count=len(plan.access_upserts),
            community_count=len(set(labels.values())),
            candidates=[candidate_report(rank, group) for rank, group in enumerate(groups, 1)],
            skipped=[skipped_report(s) for s in plan.skipped],
            timings={phase: round(elapsed, 6) for phase, elapsed in timings.items()},
        )

    async def analyze_source(self, store: GraphStore, code: str, source: str = "<string>",
                             class_names: Optional[Sequence[str]] = None) -> AnalysisReport:
        """Analyze every selected class of one module concurrently."""
        report = AnalysisReport()
        try:
            classes = select_classes(parse_source(code, filename=source), class_names)
        except CohesionGraphError as e:
            self.logger.error(str(e))
            report.errors.append(ErrorReport(source=source, message=str(e)))
            return report

        unique: Dict[str, ast.ClassDef] = {}
        for cls in classes:
            if cls.name in unique:
                self.logger.warning(
                    f"Class {cls.name} is declared more than once in {source}; "
                    f"analyzing the definition at line {cls.lineno}"
                )
            unique[cls.name] = cls
        classes = list(unique.values())

        if not classes:
            self.logger.warning(f"No classes declared in {source}")

        outcomes = await asyncio.gather(
            *(self.analyze_class(store, cls, source) for cls in classes),
            return_exceptions=True,
        )
        for cls, outcome in zip(classes, outcomes):
            if isinstance(outcome, ClassAnalysisError):
                report.errors.append(ErrorReport(
                    source=source, class_name=cls.name, message=outcome.reason
                ))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                report.classes.append(outcome)
        return report

    async def analyze_paths(self, paths: Sequence[Union[str, Path]],
                            class_names: Optional[Sequence[str]] = None,
                            store: Optional[GraphStore] = None) -> AnalysisReport:
        """
        Analyze source files with one store client acquired for the whole run.

        Args:
            paths: Source files, one or more classes each
            class_names: Restrict analysis to these classes in every file
            store: Store to use instead of the configured one
        """
        workflow_start = time.perf_counter()
        report = AnalysisReport()

        async with open_store(self.config, store) as client:
            for path in paths:
                try:
                    code = load_source(path)
                except CohesionGraphError as e:
                    self.logger.error(str(e))
                    report.errors.append(ErrorReport(source=str(path), message=str(e)))
                    continue
                file_report = await self.analyze_source(client, code, str(path), class_names)
                report.classes.extend(file_report.classes)
                report.errors.extend(file_report.errors)
            report.statistics = await client.statistics()

        self._performance_metrics["complete_workflow"] = time.perf_counter() - workflow_start
        self.logger.info(
            f"Analyzed {len(report.classes)} classes with {len(report.errors)} errors "
            f"in {self._performance_metrics['complete_workflow']:.3f}s"
        )
        return report
