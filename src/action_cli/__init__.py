"""
Workflow-command protocol helpers for GitHub Actions job steps.

The command encoder lives in `action_cli.command`, the environment/file
side channels in `action_cli.channels`, and the argparse front-end in
`action_cli.cli`.
"""

__version__ = "0.4.0"
