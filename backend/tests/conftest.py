"""
Pytest configuration for backend HTTP tests.
"""

import sys
from pathlib import Path

# Add backend to Python path for test imports
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))
