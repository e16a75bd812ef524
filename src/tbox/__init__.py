"""tbox -- context-aware command aliasing.

Type a short verb such as ``tb build`` or ``tb test`` and tbox expands it to
the right command for the project in the current directory (``npm run
build``, ``go build ./...``, ``cargo build``, ...), then runs that command
directly, without a shell.

Typical workflow::

    tb status            # which context applies here, and what can I run?
    tb build             # expand and run the context's ``build`` command
    tb --dry-run test    # show what would run without running it

Modules:
    app: Typer application factory and CLI entry point.
    dispatcher: Parse, resolve, validate and dispatch one invocation.
    executor: Shell-free child process execution with a deadline.
    registry: Command lookup over the merged context table.
    detection: Built-in marker-file context detection.
    plugins: Plugin contract, manager and built-in plugins.
    config: Layered YAML configuration.
    models: Pydantic models shared across the package.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
