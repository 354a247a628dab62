"""Global pytest configuration."""

import os

# Tests never talk to real providers; blank keys select the stub client
# and the offline enrichment tiers.
os.environ["LLM_API_KEY"] = ""
os.environ["AMAP_API_KEY"] = ""
