# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "resumeopt"

SESSION: Final[str] = f"{ROOT}:session"
