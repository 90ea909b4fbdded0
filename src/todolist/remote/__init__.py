"""Remote task source (DummyJSON to-dos endpoint)."""
