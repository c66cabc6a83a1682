from errors import OperandTypeError, UnmappedAddress
from values import is_int, type_name


class Heap:
    """Sparse integer-addressed store.

    Cells only exist once written: reading an address that was never stored
    to raises UnmappedAddress (there is no zero-initialisation).
    """

    def __init__(self):
        self.cells = {}  # address -> value

    def __len__(self):
        return len(self.cells)

    def __contains__(self, address):
        return address in self.cells

    def check_address(self, address):
        if not is_int(address):
            raise OperandTypeError(f"heap address must be an Integer, got {type_name(address)}")
        if address < 0:
            raise OperandTypeError(f"heap address must be non-negative, got {address}")
        return address

    def store(self, address, value):
        self.cells[self.check_address(address)] = value

    def load(self, address):
        self.check_address(address)
        if address not in self.cells:
            raise UnmappedAddress(f"address {address} was never written")
        return self.cells[address]

    def snapshot(self):
        return dict(self.cells)
