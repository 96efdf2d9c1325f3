"""Status, validate and list CLI commands."""

import argparse
from pathlib import Path

from btw_engine.injection.engine import InjectionEngine
from btw_engine.workflows import WorkflowCatalog


def cmd_status(
    args: argparse.Namespace, engine: InjectionEngine, catalog: WorkflowCatalog,
) -> int:
    project_root = Path(args.project).expanduser().resolve() if args.project else Path.cwd()
    if args.target:
        statuses = {engine.get_strategy(args.target).target: engine.get_status(args.target, project_root)}
    else:
        statuses = engine.get_all_statuses(project_root)

    print(f"\n  BTW Injection Status: {project_root}")
    print(f"  {'─' * 50}")
    for target, status in statuses.items():
        if status.is_injected:
            owners = ", ".join(status.workflow_ids)
            backup = "  (backup available)" if status.has_backup else ""
            print(f"    {target.value:<10} injected: {owners}{backup}")
        else:
            print(f"    {target.value:<10} not injected")
    print()
    return 0


def cmd_validate(
    args: argparse.Namespace, engine: InjectionEngine, catalog: WorkflowCatalog,
) -> int:
    project_root = Path(args.project).expanduser().resolve() if args.project else Path.cwd()
    targets = [engine.get_strategy(args.target).target] if args.target else engine.targets

    failed = []
    for target in targets:
        ok = engine.validate(target, project_root)
        print(f"  {target.value:<10} {'OK' if ok else 'INVALID'}")
        if not ok:
            failed.append(target.value)
    return 1 if failed else 0


def cmd_list(
    args: argparse.Namespace, engine: InjectionEngine, catalog: WorkflowCatalog,
) -> int:
    manifests = catalog.list_manifests()
    if not manifests:
        print(f"No workflows installed in {catalog.root}")
        return 0

    print(f"\n  {'ID':<30} {'Version':<10} {'Agents':>6}  Targets")
    print(f"  {'─' * 70}")
    for m in manifests:
        targets = ", ".join(sorted(t.value for t in m.targets))
        print(f"  {m.id:<30} {m.version:<10} {len(m.agents):>6}  {targets}")
    print(f"\n  {len(manifests)} workflow(s)")
    return 0
