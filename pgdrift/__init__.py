# ==============================================
# pgdrift - JSONB Schema Drift Detection
# ==============================================
#
# Package Structure:
#
# pgdrift/
# ├── analysis/         # Walk documents, build stats, detect drift, advise indexes
# ├── db/               # PostgreSQL client, discovery, sampling strategies
# ├── persistence/      # Save analysis reports as JSON
# ├── config.py         # Configuration management
# ├── errors.py         # Exception hierarchy
# ├── scanner.py        # Orchestrates one column or a sweep over many
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
