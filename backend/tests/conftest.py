import os

# Disable rate limiting for tests
os.environ["WORDSPLAINER_NO_RATE_LIMIT"] = "true"
# Serve the built-in word store unless a test overrides the service
os.environ["WORDSPLAINER_MOCK"] = "true"
