"""
Run the exchange-rate scraper once
"""
import asyncio
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

async def main() -> int:
    """Run the complete pipeline and map the result to an exit status"""
    from dolar_scraper.main import handler

    result = await handler()
    return 0 if result.ok else 1

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
