"""
Host token resolution
"""
from ...core.constants import GCP_PREFIX
from ...core.exceptions import ResolutionError
from ...core.interfaces import CommandRunner
from ...core.logging import get_logger
from .commands import gcloud_dry_run_command
from .models import ResolvedHost

logger = get_logger(__name__)


def resolve_host(token: str, runner: CommandRunner) -> ResolvedHost:
    """
    Resolve the host argument into an ssh target.

    "gcp:<instance>" is looked up with gcloud, which also contributes the
    ssh flags it would use (key file, host key alias, ...). Any other token
    is returned unchanged.

    Raises:
        ResolutionError: If the lookup fails or its output is not understood
    """
    token = token.strip()
    if token.startswith(GCP_PREFIX):
        return resolve_gcp_instance(token[len(GCP_PREFIX):], runner)
    return ResolvedHost(host=token)


def resolve_gcp_instance(instance: str, runner: CommandRunner) -> ResolvedHost:
    """
    Parse the ssh command printed by `gcloud compute ssh --dry-run`.

    The output looks like "/usr/bin/ssh <flags...> user@ip": the first
    token is dropped and the last one is the target.
    """
    command = gcloud_dry_run_command(instance)
    result = runner.run(command, capture=True)
    if not result.success:
        raise ResolutionError(
            f"'{command.display()}' failed (exit code {result.exit_code}): {result.output.strip()}"
        )

    tokens = result.stdout.split()
    if len(tokens) < 2:
        raise ResolutionError(
            f"unexpected output for '{command.display()}' command: {result.output.strip()!r}"
        )

    flags = " ".join(tokens[1:-1])
    target = tokens[-1].strip()
    logger.debug(f"resolved gcp instance {instance} to {target}")
    return ResolvedHost(host=target, extra_flags=flags)
