"""Identity resolution from bearer tokens issued by the auth provider."""
