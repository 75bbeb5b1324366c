import atheris


class EnhancedDataProvider(atheris.FuzzedDataProvider):
    def ConsumeRandomBytes(self) -> bytes:
        return self.ConsumeBytes(self.ConsumeIntInRange(0, self.remaining_bytes()))

    def ConsumeRandomString(self) -> str:
        return self.ConsumeUnicodeNoSurrogates(self.ConsumeIntInRange(0, self.remaining_bytes()))

    def ConsumeBoundary(self) -> str:
        # RFC 2046 allows 1 to 70 characters.
        boundary = self.ConsumeUnicodeNoSurrogates(self.ConsumeIntInRange(1, 70))
        return boundary.encode("latin-1", errors="ignore").decode("latin-1") or "b"
