class InvalidRequest(Exception):
    """A client request that is rejected and reported back to its sender only."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
