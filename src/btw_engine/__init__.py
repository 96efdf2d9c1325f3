"""BTW workflow injection engine.

Reconciles reusable workflow bundles of agent prompt definitions with the
per-project configuration trees read by AI coding tools (Claude Code,
Cursor, Windsurf, GitHub Copilot).

Injected content is marked with its owning workflow id:
    # workflow: <id>                   (per-agent artifacts)
    <!-- BTW:<id>:<timestamp> -->      (shared instructions document)

The markers are the only record of what is installed. Anything without
them is user content and is never modified.
"""

BTW_VERSION = "1.0.0"
