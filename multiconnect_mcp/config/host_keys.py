"""SSH host key trust store.

Tracks known host fingerprints in the OpenSSH known_hosts file. The file
format is never parsed here: lookups, scans and removals go through
``ssh-keygen`` and ``ssh-keyscan`` so hashed entries keep working.
"""

import asyncio
import logging
import os
from pathlib import Path

from multiconnect_mcp.errors import ScanError, ToolMissingError, TrustError
from multiconnect_mcp.models import KnownHostStatus

logger = logging.getLogger(__name__)

SSH_KEYGEN = "ssh-keygen"
SSH_KEYSCAN = "ssh-keyscan"

# Key type name (ssh-keyscan -t) -> key type tokens found in key lines
KEY_LINE_TYPES: dict[str, tuple[str, ...]] = {
    "ed25519": ("ssh-ed25519",),
    "ecdsa": ("ecdsa-sha2-nistp256", "ecdsa-sha2-nistp384", "ecdsa-sha2-nistp521"),
    "rsa": ("ssh-rsa",),
}


def known_hosts_name(hostname: str, port: int = 22) -> str:
    """Name used for a host in known_hosts (``[host]:port`` off port 22)."""
    if port == 22:
        return hostname
    return f"[{hostname}]:{port}"


def _key_lines(output: str) -> list[str]:
    return [
        line.strip()
        for line in output.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]


class HostKeyStore:
    """Known-host fingerprints backed by OpenSSH tools."""

    def __init__(
        self,
        known_hosts_path: Path | str | None = None,
        key_type: str = "ed25519",
        scan_timeout: int = 10,
    ):
        """Initialize host key store.

        Args:
            known_hosts_path: Path to known_hosts (default: ~/.ssh/known_hosts)
            key_type: Host key type used as the unit of trust
            scan_timeout: Seconds ssh-keyscan may wait for a host

        Raises:
            ValueError: If key_type is not supported
        """
        if key_type not in KEY_LINE_TYPES:
            raise ValueError(
                f"Unsupported host key type {key_type!r}, "
                f"expected one of {', '.join(KEY_LINE_TYPES)}"
            )
        if known_hosts_path is None:
            known_hosts_path = Path.home() / ".ssh" / "known_hosts"
        self.known_hosts_path = Path(known_hosts_path).expanduser()
        self.key_type = key_type
        self.scan_timeout = scan_timeout

    async def _run(
        self,
        *args: str,
        input_text: str | None = None,
        timeout: float | None = None,
    ) -> tuple[int, str, str]:
        """Run an OpenSSH helper and capture its output.

        Raises:
            ToolMissingError: If the executable is not installed
            asyncio.TimeoutError: If the process outlives the timeout
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE if input_text is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ToolMissingError(args[0]) from e

        data = input_text.encode() if input_text is not None else None
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(data), timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise

        return (
            proc.returncode if proc.returncode is not None else -1,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    def _is_trusted_type(self, line: str) -> bool:
        parts = line.split()
        return len(parts) >= 3 and parts[1] in KEY_LINE_TYPES[self.key_type]

    async def _fingerprint(self, key_line: str) -> str | None:
        """Fingerprint a known_hosts/keyscan line via ``ssh-keygen -l``."""
        returncode, stdout, stderr = await self._run(
            SSH_KEYGEN, "-l", "-f", "-", input_text=key_line + "\n"
        )
        if returncode != 0:
            logger.debug("ssh-keygen -l failed: %s", stderr.strip())
            return None
        parts = stdout.split()
        return parts[1] if len(parts) >= 2 else None

    async def _scan(self, hostname: str, port: int, hashed: bool = False) -> list[str]:
        args = [SSH_KEYSCAN, "-T", str(self.scan_timeout), "-t", self.key_type]
        if port != 22:
            args += ["-p", str(port)]
        if hashed:
            args.append("-H")
        args.append(hostname)

        try:
            returncode, stdout, stderr = await self._run(
                *args, timeout=self.scan_timeout + 5
            )
        except asyncio.TimeoutError as e:
            raise ScanError(f"Host key scan for {hostname} timed out") from e

        lines = [line for line in _key_lines(stdout) if self._is_trusted_type(line)]
        if returncode != 0 and not lines:
            detail = stderr.strip() or f"exit code {returncode}"
            raise ScanError(f"ssh-keyscan failed for {hostname}: {detail}")
        if not lines:
            raise ScanError(f"No {self.key_type} host key returned for {hostname}")
        return lines

    async def is_known(self, hostname: str, port: int = 22) -> KnownHostStatus:
        """Look up the trusted fingerprint for a host.

        A missing known_hosts file means the host is not known.

        Returns:
            KnownHostStatus with the stored fingerprint if present

        Raises:
            ToolMissingError: If ssh-keygen is not installed
            TrustError: If a stored entry cannot be fingerprinted
        """
        if not self.known_hosts_path.exists():
            return KnownHostStatus(exists=False)

        name = known_hosts_name(hostname, port)
        returncode, stdout, _ = await self._run(
            SSH_KEYGEN, "-F", name, "-f", str(self.known_hosts_path)
        )
        lines = [line for line in _key_lines(stdout) if self._is_trusted_type(line)]
        if returncode != 0 or not lines:
            logger.debug("Host %s not in %s", name, self.known_hosts_path)
            return KnownHostStatus(exists=False)

        fingerprint = await self._fingerprint(lines[0])
        if fingerprint is None:
            raise TrustError(f"Cannot read stored host key for {name}")
        return KnownHostStatus(exists=True, fingerprint=fingerprint)

    async def fetch_fingerprint(self, hostname: str, port: int = 22) -> str:
        """Scan the host and fingerprint its current key.

        Raises:
            ScanError: If the scan errors, times out, or returns no key
            ToolMissingError: If ssh-keyscan or ssh-keygen is not installed
        """
        lines = await self._scan(hostname, port)
        fingerprint = await self._fingerprint(lines[0])
        if fingerprint is None:
            raise ScanError(f"Cannot fingerprint scanned key for {hostname}")
        logger.debug("Scanned %s: %s", known_hosts_name(hostname, port), fingerprint)
        return fingerprint

    async def add(self, hostname: str, fingerprint: str, port: int = 22) -> None:
        """Trust a host key with the given fingerprint.

        Idempotent for an identical fingerprint. A different stored
        fingerprint must be removed by the caller first.

        Raises:
            ScanError: If the host no longer presents that key
            TrustError: If the known_hosts file cannot be written
        """
        status = await self.is_known(hostname, port)
        if status.exists and status.fingerprint == fingerprint:
            logger.debug("Host key for %s already trusted", hostname)
            return

        for line in await self._scan(hostname, port, hashed=True):
            if await self._fingerprint(line) == fingerprint:
                self._append(line)
                logger.info(
                    "Trusted host key for %s (%s)",
                    known_hosts_name(hostname, port),
                    fingerprint,
                )
                return

        raise ScanError(
            f"Scanned host key for {hostname} does not match {fingerprint}"
        )

    def _append(self, line: str) -> None:
        path = self.known_hosts_path
        try:
            path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            created = not path.exists()
            prefix = ""
            if not created:
                existing = path.read_bytes()
                if existing and not existing.endswith(b"\n"):
                    prefix = "\n"
            with path.open("a") as f:
                f.write(f"{prefix}{line}\n")
            if created:
                os.chmod(path, 0o600)
        except OSError as e:
            raise TrustError(f"Cannot update {path}: {e}") from e

    async def remove(self, hostname: str, port: int = 22) -> None:
        """Forget every stored key for a host.

        Raises:
            TrustError: If ssh-keygen fails to rewrite the file
            ToolMissingError: If ssh-keygen is not installed
        """
        if not self.known_hosts_path.exists():
            return

        name = known_hosts_name(hostname, port)
        returncode, _, stderr = await self._run(
            SSH_KEYGEN, "-R", name, "-f", str(self.known_hosts_path)
        )
        if returncode != 0:
            if "not found" in stderr.lower():
                return
            raise TrustError(f"Cannot remove {name} from known_hosts: {stderr.strip()}")
        logger.info("Removed host key for %s", name)
