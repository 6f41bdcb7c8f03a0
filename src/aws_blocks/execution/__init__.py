"""Client construction, operation invocation and response publication."""
