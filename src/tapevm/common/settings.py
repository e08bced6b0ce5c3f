class RunSettings:
    verbose: bool
    color: bool | None  # None lets click decide

    def __init__(self):
        self.verbose = False
        self.color = None

    def update(
        self,
        verbose: bool | None = None,
        color: bool | None = None
    ):
        if verbose is not None:
            self.verbose = verbose

        if color is not None:
            self.color = color

        return self
