"""Archive collaborator.

Backups are produced and unpacked by the system ``tar`` utility. The
orchestrators only depend on the :class:`Archiver` interface, so tests can
substitute an in-process fake.
"""

import logging
import os
import shutil
import subprocess
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)


class Archiver(Protocol):
    def archive(self, source_dirs: Sequence[str], dest_path: str) -> bool:
        """Pack the contents of every source dir into one compressed file."""
        ...

    def extract(self, archive_path: str, dest_dir: str) -> bool:
        """Unpack an archive into an existing directory."""
        ...


class TarArchiver:
    """Runs ``tar`` as a blocking child process and reports its exit status.

    Each source root is added with ``-C <dir> .`` so the archive holds the
    directory contents without their absolute path prefix.
    """

    def __init__(self, tar_cmd: str = "tar"):
        self.tar_cmd = tar_cmd

    def available(self) -> bool:
        return shutil.which(self.tar_cmd) is not None

    def _run(self, cmd: list[str]) -> bool:
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                check=False,
            )
        except (FileNotFoundError, OSError) as exc:
            logger.error("Could not run %s: %s", self.tar_cmd, exc)
            return False
        if proc.returncode != 0:
            logger.error(
                "%s exited with status %d: %s",
                self.tar_cmd, proc.returncode,
                proc.stderr.decode(errors="replace").strip(),
            )
            return False
        return True

    def archive(self, source_dirs: Sequence[str], dest_path: str) -> bool:
        # Relative -C operands resolve against the previous -C, so pin each root
        cmd = [self.tar_cmd, "-czf", os.path.abspath(dest_path)]
        for src in source_dirs:
            cmd.extend(["-C", os.path.abspath(src), "."])
        return self._run(cmd)

    def extract(self, archive_path: str, dest_dir: str) -> bool:
        return self._run([
            self.tar_cmd, "-xzf", os.path.abspath(archive_path),
            "-C", os.path.abspath(dest_dir),
        ])
