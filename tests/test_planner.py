from pathlib import Path

import pytest

from suitesorter.models import Category, MoveStatus
from suitesorter.pipeline import build_plan


def by_source(plan):
    return {m.source.as_posix(): m for m in plan.moves}


def codes(plan):
    return sorted(i.code for i in plan.issues)


def test_legacy_plan(legacy_project):
    plan = build_plan(legacy_project)
    moves = by_source(plan)

    assert moves["tests/connectx_api/sit_tests/test_login.py"].destination == \
        Path("tests/e2e/connectx_api/ui/test_login.py")
    assert moves["tests/connectx_api/tests/conftest.py"].status is MoveStatus.IN_PLACE
    assert moves["tests/test_orphan.py"].status is MoveStatus.UNCLASSIFIED
    assert moves["tests/test_orphan.py"].destination is None
    assert len(plan.pending()) == 6
    assert plan.held_back() == []
    assert codes(plan) == ["unclassified-file"]


def test_moves_are_sorted_by_source(legacy_project):
    plan = build_plan(legacy_project)
    sources = [m.source.as_posix() for m in plan.moves]
    assert sources == sorted(sources)


def test_counts_by_category(legacy_project):
    counts = build_plan(legacy_project).counts_by_category()
    assert counts == {
        "unit": 0,
        "integration": 2,
        "e2e": 1,
        "helper": 1,
        "fixture": 2,
        "report": 1,
        "unclassified": 1,
    }


def test_directories_to_create(legacy_project):
    plan = build_plan(legacy_project)
    dirs = [d.as_posix() for d in plan.directories]

    assert "tests/e2e" in dirs
    assert "tests/e2e/connectx_api/ui" in dirs
    assert "tests/integration/connectx_api/network_coverage" in dirs
    assert "reports/connectx_api" in dirs
    assert "tests" not in dirs
    assert dirs == sorted(dirs)


def test_scaffolding(legacy_project):
    plan = build_plan(legacy_project)
    scaffolds = {p.as_posix(): body for p, body in plan.scaffolds.items()}

    assert scaffolds["tests/e2e/connectx_api/ui/__init__.py"] == ""
    assert "pytest.mark.e2e" in scaffolds["tests/e2e/conftest.py"]
    assert "pytest.mark.integration" in scaffolds["tests/integration/conftest.py"]
    assert "tests/unit/conftest.py" not in scaffolds
    # reports live outside the tests folder: no package markers there
    assert not any(p.startswith("reports/") for p in scaffolds)


def test_plan_for_another_tests_dir(make_project):
    root = make_project({
        "qa/connectx_api/sit_tests/test_login.py": "",
        "qa/connectx_api/tests/sprint-1_NetworkCoverage/test_valid_zip.py": "",
    })
    plan = build_plan(root, tests_dir="qa")
    moves = by_source(plan)

    assert moves["qa/connectx_api/sit_tests/test_login.py"].destination == \
        Path("qa/e2e/connectx_api/ui/test_login.py")
    assert moves["qa/connectx_api/tests/sprint-1_NetworkCoverage/test_valid_zip.py"].destination == \
        Path("qa/integration/connectx_api/network_coverage/test_valid_zip.py")
    assert len(plan.pending()) == 2
    assert plan.issues == []
    assert Path("qa/e2e/conftest.py") in plan.scaffolds
    assert Path("qa/integration/conftest.py") in plan.scaffolds


def test_data_only_folders_get_no_package_marker(legacy_project):
    scaffolds = build_plan(legacy_project).scaffolds

    assert Path("tests/fixtures/connectx_api/__init__.py") not in scaffolds
    assert Path("tests/fixtures/__init__.py") not in scaffolds
    assert Path("tests/integration/connectx_api/network_coverage/__init__.py") in scaffolds
    assert Path("tests/integration/connectx_api/__init__.py") in scaffolds


def test_scaffolding_can_be_disabled(legacy_project):
    assert build_plan(legacy_project, scaffold=False).scaffolds == {}


def test_existing_layer_conftest_is_kept(make_project):
    root = make_project({
        "tests/integration/conftest.py": "# mine\n",
        "tests/shop/tests/sprint-1_Cart/test_cart.py": "",
    })
    plan = build_plan(root)
    assert Path("tests/integration/conftest.py") not in plan.scaffolds


def test_sources_colliding_on_one_destination(make_project):
    root = make_project({
        "tests/shop/tests/sprint-1_Login/test_login.py": "a",
        "tests/shop/tests/sprint-3_login/test_login.py": "b",
        "tests/shop/tests/sprint-3_login/test_logout.py": "c",
    })
    plan = build_plan(root)
    moves = by_source(plan)

    assert moves["tests/shop/tests/sprint-1_Login/test_login.py"].status is MoveStatus.COLLISION
    assert moves["tests/shop/tests/sprint-3_login/test_login.py"].status is MoveStatus.COLLISION
    assert moves["tests/shop/tests/sprint-3_login/test_logout.py"].status is MoveStatus.MOVE
    assert codes(plan) == ["destination-collision"]
    assert len(plan.issues[0].paths) == 2


def test_destination_taken_by_migrated_file(make_project):
    root = make_project({
        "tests/integration/shop/login/test_login.py": "new",
        "tests/shop/tests/sprint-1_Login/test_login.py": "old",
    })
    moves = by_source(build_plan(root))

    assert moves["tests/integration/shop/login/test_login.py"].status is MoveStatus.IN_PLACE
    assert moves["tests/shop/tests/sprint-1_Login/test_login.py"].status is MoveStatus.COLLISION


def test_destination_occupied_on_disk(make_project):
    root = make_project({
        "reports/shop/run.html": "existing",
        "tests/shop/reports/run.html": "legacy",
    })
    plan = build_plan(root)

    assert by_source(plan)["tests/shop/reports/run.html"].status is MoveStatus.COLLISION
    assert codes(plan) == ["destination-collision"]


def test_dash_and_underscore_sprint_dirs_need_review(make_project):
    root = make_project({
        "tests/shop/tests/sprint-6/test_a.py": "dash",
        "tests/shop/tests/sprint_6/test_a.py": "underscore",
        "tests/shop/tests/sprint_6/test_b.py": "only here",
        "tests/shop/tests/sprint-7/test_c.py": "fine",
    })
    plan = build_plan(root)
    moves = by_source(plan)

    for src in ("tests/shop/tests/sprint-6/test_a.py",
                "tests/shop/tests/sprint_6/test_a.py",
                "tests/shop/tests/sprint_6/test_b.py"):
        assert moves[src].status is MoveStatus.REVIEW
    assert moves["tests/shop/tests/sprint-7/test_c.py"].status is MoveStatus.MOVE
    assert "duplicate-directory" in codes(plan)
    dup = next(i for i in plan.issues if i.code == "duplicate-directory")
    assert {p.as_posix() for p in dup.paths} == {"tests/shop/tests/sprint-6", "tests/shop/tests/sprint_6"}


def test_review_files_are_not_in_pending(make_project):
    root = make_project({
        "tests/shop/tests/sprint-6/test_a.py": "",
        "tests/shop/tests/Sprint_6/test_b.py": "",
    })
    plan = build_plan(root)
    assert plan.pending() == []
    assert len(plan.held_back()) == 2
    assert plan.directories == []


def test_unclassified_counts(legacy_project):
    plan = build_plan(legacy_project)
    unclassified = [m for m in plan.moves if m.category is Category.UNCLASSIFIED]
    assert [m.source.as_posix() for m in unclassified] == ["tests/test_orphan.py"]


def test_plan_does_not_touch_the_tree(legacy_project, tree_digest):
    before = tree_digest(legacy_project)
    build_plan(legacy_project)
    assert tree_digest(legacy_project) == before
    assert not (legacy_project / ".suitesorter").exists()


def test_plan_with_missing_root(tmp_path):
    from suitesorter.errors import PathNotFound

    with pytest.raises(PathNotFound):
        build_plan(tmp_path / "missing")
