class CabinetNotFound(Exception):
    def __init__(self, cabinet_id: int, month: int, year: int, device_id=None):
        self.cabinet_id = cabinet_id
        self.month = month
        self.year = year
        self.device_id = device_id
        super().__init__(f"Cabinet {cabinet_id} ({month}/{year}) or device {device_id} not found")


class VersionConflict(Exception):
    def __init__(self, expected: int, actual: int = None):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Version conflict: expected {expected}, stored {actual}")


class InvalidPayload(Exception):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
