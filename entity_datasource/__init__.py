"""Entity datasource: exposes stored records to a search indexing pipeline."""
