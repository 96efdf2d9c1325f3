"""Inject, eject and restore CLI commands."""

import argparse
from pathlib import Path

from btw_engine.injection.engine import InjectionEngine
from btw_engine.injection.strategy import EjectOptions, InjectOptions
from btw_engine.workflows import WorkflowCatalog


def _project_root(args: argparse.Namespace) -> Path:
    return Path(args.project).expanduser().resolve() if args.project else Path.cwd()


def cmd_inject(
    args: argparse.Namespace, engine: InjectionEngine, catalog: WorkflowCatalog,
) -> int:
    if args.interactive:
        return _run_interactive(args, engine, catalog)
    if not args.workflow_id:
        print("ERROR: Provide a workflow id or use --interactive")
        print("Usage: btw inject <workflow-id> or btw inject --interactive")
        return 1

    project_root = _project_root(args)
    target = engine.get_strategy(args.target).target
    manifest = catalog.get(args.workflow_id)

    print(f"  Injecting '{manifest.id}' into {target.value}...")
    print(f"  {'Project:':<18}{project_root}")
    result = engine.inject(manifest, target, InjectOptions(
        project_root=project_root,
        backup=args.backup,
        force=args.force,
        merge=args.merge,
    ))

    print("  Workflow injected successfully")
    print(f"  {'Config path:':<18}{result.config_path}")
    print(f"  {'Agents injected:':<18}{result.agent_count}")
    for path in result.agent_paths:
        print(f"    - {path}")
    if result.backup_created and result.backup_path:
        print(f"  {'Backup:':<18}{result.backup_path}")
    return 0


def cmd_eject(
    args: argparse.Namespace, engine: InjectionEngine, catalog: WorkflowCatalog,
) -> int:
    project_root = _project_root(args)
    engine.eject(args.target, EjectOptions(
        project_root=project_root,
        workflow_id=args.workflow_id,
        clean=args.clean,
    ))
    what = f"'{args.workflow_id}'" if args.workflow_id else "all BTW workflows"
    print(f"  Ejected {what} from {args.target} in {project_root}")
    return 0


def cmd_restore(
    args: argparse.Namespace, engine: InjectionEngine, catalog: WorkflowCatalog,
) -> int:
    restored = engine.restore_backups(args.target, _project_root(args), args.workflow_id)
    if not restored:
        print("  No backups to restore.")
        return 0
    print(f"  Restored {len(restored)} file(s):")
    for path in restored:
        print(f"    - {path}")
    return 0


def _run_interactive(
    args: argparse.Namespace, engine: InjectionEngine, catalog: WorkflowCatalog,
) -> int:
    from btw_engine.interactive import TerminalIO, ToggleLoop, workflow_items

    project_root = _project_root(args)
    target = engine.get_strategy(args.target).target
    loop = ToggleLoop(
        engine=engine,
        target=target,
        project_root=project_root,
        load_items=lambda: workflow_items(catalog, engine, target, project_root),
        load_manifest=catalog.get,
        io=TerminalIO(
            title=f"BTW Workflows (target: {target.value})",
            empty_message=f"No workflows found in {catalog.root}",
        ),
        backup=args.backup,
        merge=args.merge,
    )
    loop.run()
    print("Exited interactive mode.")
    return 0


