"""GitClient — thin async wrapper around the git CLI."""

import asyncio
import os
from pathlib import Path

from bencha.workspace.infrastructure.errors import GitCommandError

# Never block on credential or editor prompts inside a benchmark run.
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0", "GIT_EDITOR": "true"}


class GitClient:
    """Runs git subcommands with asyncio subprocesses and returns their stdout."""

    def __init__(self, binary: str = "git") -> None:
        self._binary = binary

    async def run(self, args: list[str], cwd: Path | None = None) -> str:
        """Run `git <args>` in cwd.

        Raises:
            GitCommandError: if git cannot be started or exits non-zero.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self._binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env={**os.environ, **_GIT_ENV},
            )
        except FileNotFoundError as exc:
            raise GitCommandError(args=args, reason=f"{self._binary} not found") from exc

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise GitCommandError(
                args=args,
                reason=f"exit code {process.returncode}: {detail}",
            )
        return stdout.decode("utf-8", errors="replace")

    async def clone(
        self, repo: str, destination: Path, branch: str | None = None
    ) -> None:
        args = ["clone", "--depth", "1"]
        if branch:
            args += ["--branch", branch, "--single-branch"]
        await self.run(args=[*args, repo, str(destination)])

    async def checkout_commit(self, repo_dir: Path, commit: str) -> None:
        """Check out commit in a shallow clone, fetching full history first."""
        shallow = await self.run(["rev-parse", "--is-shallow-repository"], cwd=repo_dir)
        if shallow.strip() == "true":
            await self.run(["fetch", "--unshallow"], cwd=repo_dir)
        await self.run(["checkout", commit], cwd=repo_dir)

    async def head_commit(self, repo_dir: Path) -> str:
        return (await self.run(["rev-parse", "HEAD"], cwd=repo_dir)).strip()

    async def remote_branch_exists(self, repo: str, branch: str) -> bool:
        output = await self.run(["ls-remote", "--heads", repo, branch])
        return bool(output.strip())
