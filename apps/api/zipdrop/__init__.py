"""zipdrop: upload files, download them once as a ZIP archive."""
