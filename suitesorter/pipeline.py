"""Scan, classify and plan in one call; apply a plan and journal it."""

import logging
from pathlib import Path
from typing import Optional

from .classifier import Classifier, RuleSet
from .logger import MoveLogger
from .models import ApplyReport, MigrationPlan
from .mover import SafeMover
from .planner import MigrationPlanner
from .scanner import FolderScanner

log = logging.getLogger(__name__)


def build_plan(
    root: Path,
    rules_path: Optional[Path] = None,
    tests_dir: str = "tests",
    scaffold: bool = True,
) -> MigrationPlan:
    rule_set = RuleSet(rules_path, tests_dir=tests_dir)
    scanner = FolderScanner(root, tests_dir=tests_dir)
    classifier = Classifier(rule_set)
    files = classifier.assign(scanner.scan())
    log.info("Scanned %d test files under %s", len(files), root / tests_dir)
    return MigrationPlanner(root, tests_dir=tests_dir, scaffold=scaffold).build(files)


def apply_plan(plan: MigrationPlan, tests_dir: str = "tests", prune_empty: bool = True) -> ApplyReport:
    mover = SafeMover(plan.root, tests_dir=tests_dir, prune_empty=prune_empty)
    report = mover.apply(plan)
    MoveLogger(plan.root).record(report)
    return report
