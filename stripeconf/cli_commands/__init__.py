from .project_ops import handle_config_commands, handle_project_commands
from .stripe_ops import handle_stripe_commands

__all__ = [
    "handle_config_commands",
    "handle_project_commands",
    "handle_stripe_commands",
]
