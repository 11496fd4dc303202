"""ETL pipeline package: normalization, enrichment and persistence of scraped listings."""
