"""
Entry point for the matrix testing harness
"""

import sys
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from runners.matrix_cli import main

if __name__ == "__main__":
    sys.exit(main())
