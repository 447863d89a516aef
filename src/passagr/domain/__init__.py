"""Editorial pipeline domain: model, ports and stages."""
