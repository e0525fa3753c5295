"""Session state machines. Import :class:`SceneSession` from ``starscene.session.app``."""
