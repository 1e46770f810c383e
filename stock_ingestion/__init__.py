"""
stock_ingestion -- Bulk inventory import from spreadsheets.

Reads .xlsx / .csv files, validates each row and upserts products and their
inventory records through the kernel services, one transaction per row.

Architecture:
    stock_ingestion/ is a top-level package. Nothing in stock_kernel/
    imports from ingestion, except the model registry used for table
    creation.
"""
