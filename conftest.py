"""
Root pytest configuration: puts the project modules on the path
"""
import sys
from pathlib import Path

from dotenv import load_dotenv

project_root = Path(__file__).parent.absolute()
sys.path.insert(0, str(project_root))

# A local .env may point the connections file or logs elsewhere
load_dotenv(project_root / ".env")


def pytest_report_header(config):
    return [f"slackecho root: {project_root}"]
