# Package marker for the Torn API client.
