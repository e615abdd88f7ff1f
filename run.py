#!/usr/bin/env python3
"""Start the tools API (uvicorn). Host/port come from API_HOST / API_PORT."""
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from app.main import main

if __name__ == "__main__":
    main()
