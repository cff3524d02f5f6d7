# --------- Error Classes ---------


class DataAlchemistError(Exception):
    """Base class for every hard failure raised by data_alchemist."""


class UnsupportedInputError(DataAlchemistError):
    """Input the library cannot interpret at all (unknown entity kind, no headers, bad file)."""


class UnknownPresetError(DataAlchemistError, KeyError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"Unknown priority preset: {self.name}"
