from typing import List, Protocol


class Composer(Protocol):
    def open(self, name: str) -> None: ...

    def push(self, text: str) -> None: ...

    def close(self) -> None: ...


class JsonComposer:
    def __init__(self):
        self.parts: List[str] = []

    def open(self, name: str) -> None:
        self.parts.append('{"')
        self.parts.append(name)
        self.parts.append('":')

    def push(self, text: str) -> None:
        self.parts.append(text)

    def close(self) -> None:
        self.parts.append("}")

    def getvalue(self) -> str:
        return "".join(self.parts)

    def __str__(self) -> str:
        return self.getvalue()


class SkipComposer:
    def open(self, name: str) -> None:
        pass

    def push(self, text: str) -> None:
        pass

    def close(self) -> None:
        pass


class RawComposer:
    # Drops element framing so a nested value can be embedded unwrapped.
    def __init__(self):
        self.parts: List[str] = []

    def open(self, name: str) -> None:
        pass

    def push(self, text: str) -> None:
        self.parts.append(text)

    def close(self) -> None:
        pass

    def getvalue(self) -> str:
        return "".join(self.parts)

    def __str__(self) -> str:
        return self.getvalue()
