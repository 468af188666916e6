"""
Salary Desk Calculation Engines - MCP Server

FastMCP server exposing salary calculation tools:
- Salary Engine: gross-to-net estimate and company allocation
- Payment Split: tiered payment-method splitting
"""

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Import the MCP instance and tools from tool modules
# This registers all the tools with the MCP server
from engines.tools.salary_engine import mcp  # noqa: E402
from engines.tools.payment_split import *  # noqa: E402, F401, F403


@asynccontextmanager
async def lifespan(server: FastMCP):
    """MCP server lifespan manager."""
    logger.info("Salary Desk Calculation Engines starting...")
    yield
    logger.info("Salary Desk Calculation Engines shutting down...")


# Configure the MCP server
mcp.name = "Salary Desk Calculation Engines"
mcp.description = """
Salary Desk calculation engines.

1. **Salary Engine** (calculate_gross_to_net, calculate_worker_salary)
   - Gross-to-net estimate with flat tax and social security rates
   - Per-contract payable amount with overtime at the average contract rate
   - Allocation of the total across companies by share of hours, with
     company-tagged adjustments netted into their company

2. **Payment Split** (split_payment_tiers)
   - Ordered fixed or percentage tiers per payment method
   - Single remainder tier absorbing what is left

Amounts are rounded to cents; the rounding residue of an allocation goes to
the last company.
"""


def main():
    """Run the MCP server."""
    logger.info("Starting Salary Desk Calculation Engines MCP Server")
    mcp.run()


if __name__ == "__main__":
    main()
