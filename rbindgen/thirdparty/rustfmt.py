import shutil
import sys

if sys.version_info >= (3, 12):
    from typing import override
else:
    from typing_extensions import override

from rbindgen import utils

from .thirdparty import ThirdParty


class RustFmt(ThirdParty):
    def __init__(self, edition: str = "2021"):
        self.edition = edition

    @staticmethod
    @override
    def check_requirements() -> list[str]:
        if not shutil.which("rustfmt"):
            return ["rustfmt"]
        return []

    def format(self, file_path):
        cmd = ["rustfmt", "--edition", self.edition, file_path]
        result = utils.run_command(cmd, capture_output=False)
        if result.returncode != 0:
            raise OSError(f"Failed to format the file: {file_path}")

    def format_code(self, code: str) -> str:
        """Format bindings text through rustfmt reading stdin."""
        cmd = ["rustfmt", "--edition", self.edition]
        result = utils.run_command(cmd, input_data=code)
        if result.returncode != 0:
            raise OSError(f"Failed to format the bindings: {result.stderr.strip()}")
        return result.stdout
