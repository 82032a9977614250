from pathlib import Path

from pipewright import (
    OP_COPY,
    InputBuildSettings,
    PipelineRule,
    ShellOperation,
)


# Optional, and can be overridden with CLI arguments.
SETTINGS = InputBuildSettings(
    project_root=Path(__file__).parent / 'basic_site',
    jobs=2,
)
RULES = [
    # Diagrams live beside the posts that use them.
    PipelineRule('.', '/blog/*.svg', [OP_COPY]),
    # The result of the last command is left in $SCRATCH and copied to the
    # target.
    PipelineRule('.', '/blog/*.txt', ['tr a-z A-Z < $SOURCE > $SCRATCH']),
    # Site-wide images are shared by every page.
    PipelineRule('/img', '/static/*.svg', [
        ShellOperation("sed 's/COLOR/#336699/' $SOURCE > $SCRATCH", requires=['sed']),
        ShellOperation("tr -s ' \\n' ' ' < $SCRATCH > $TARGET", requires=['tr']),
    ]),
]
