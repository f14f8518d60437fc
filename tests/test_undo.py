import logging
import shutil
from pathlib import Path

from suitesorter.logger import MoveLogger
from suitesorter.pipeline import apply_plan, build_plan
from suitesorter.undo import UndoManager


def test_undo_restores_the_tree_before_apply(legacy_project, tree_digest):
    before = tree_digest(legacy_project)
    report = apply_plan(build_plan(legacy_project))
    assert tree_digest(legacy_project) != before

    logger = MoveLogger(legacy_project)
    results = UndoManager(legacy_project, logger, dry_run=False).undo_batch(report.batch_id)

    assert all(r.performed for r in results)
    assert tree_digest(legacy_project) == before


def test_undo_dry_run_changes_nothing(legacy_project, tree_digest):
    report = apply_plan(build_plan(legacy_project))
    after_apply = tree_digest(legacy_project)

    logger = MoveLogger(legacy_project)
    previews = UndoManager(legacy_project, logger, dry_run=True).undo_batch(report.batch_id)

    assert previews
    assert not any(r.performed for r in previews)
    assert tree_digest(legacy_project) == after_apply


def test_undo_renames_on_conflict(make_project):
    root = make_project({"tests/shop/tests/sprint-1_Cart/test_cart.py": "legacy"})
    report = apply_plan(build_plan(root), prune_empty=False)
    (root / "tests/shop/tests/sprint-1_Cart/test_cart.py").write_text("newer", encoding="utf-8")

    results = UndoManager(root, MoveLogger(root), dry_run=False).undo_batch(report.batch_id)

    restored = [r for r in results if r.reason == "restore name conflict"]
    assert len(restored) == 1
    assert restored[0].dst.name == "test_cart (1).py"
    assert (root / "tests/shop/tests/sprint-1_Cart/test_cart.py").read_text() == "newer"
    assert (root / "tests/shop/tests/sprint-1_Cart/test_cart (1).py").read_text() == "legacy"


def test_undo_keeps_folders_that_gained_files(make_project):
    root = make_project({"tests/shop/tests/sprint-1_Cart/test_cart.py": ""})
    report = apply_plan(build_plan(root))
    (root / "tests/integration/shop/cart/test_new.py").write_text("", encoding="utf-8")

    results = UndoManager(root, MoveLogger(root), dry_run=False).undo_batch(report.batch_id)

    assert (root / "tests/integration/shop/cart/test_new.py").is_file()
    assert any(r.reason == "folder not empty, kept" for r in results)


def test_unknown_batch_is_empty(legacy_project):
    assert UndoManager(legacy_project, MoveLogger(legacy_project)).undo_batch("19700101-000000") == []


def test_failed_restore_does_not_stop_the_rest(legacy_project, monkeypatch, caplog):
    report = apply_plan(build_plan(legacy_project))
    real_move = shutil.move

    def flaky_move(src, dst):
        if src.endswith("test_login.py"):
            raise PermissionError(13, "Permission denied")
        return real_move(src, dst)

    monkeypatch.setattr("suitesorter.undo.shutil.move", flaky_move)
    with caplog.at_level(logging.ERROR, logger="suitesorter"):
        results = UndoManager(legacy_project, MoveLogger(legacy_project), dry_run=False).undo_batch(report.batch_id)

    failed = [r for r in results if r.failed]
    assert len(failed) == 1
    assert failed[0].src == Path("tests/e2e/connectx_api/ui/test_login.py")
    assert failed[0].reason.startswith("permission-denied")
    assert "Undo of move" in caplog.text

    assert (legacy_project / "tests/e2e/connectx_api/ui/test_login.py").is_file()
    assert (legacy_project / "tests/connectx_api/tests/sprint-2_UserProfile/test_profile.py").is_file()
    assert (legacy_project / "tests/connectx_api/sit_tests/pages/login_page.py").is_file()
    assert not (legacy_project / "tests/integration/connectx_api/user_profile/test_profile.py").exists()
