"""Identity and access control: IP classifier, access resolver, session, route guard, permissions."""
