from bitarray import bitarray


class HuffmanNode: # Node for a prefix-code tree
    def __init__(self, data=None, zero=None, one=None):
        self.data = data    # symbol carried by a leaf, None on internal nodes
        self.zero = zero    # child taken on a 0 bit
        self.one = one      # child taken on a 1 bit

    @classmethod
    def leaf(cls, data):
        return cls(data=data)

    @classmethod
    def internal(cls, zero, one):
        return cls(zero=zero, one=one)

    def child(self, bit):
        return self.one if bit else self.zero

    def is_leaf(self) -> bool:
        return self.zero is None and self.one is None

    def is_valid_node(self) -> bool:
        # a leaf with a symbol, or an internal node with both children and no symbol
        return (self.is_leaf() and self.data is not None) or \
               (self.zero is not None and self.one is not None and self.data is None)

    def is_valid_tree(self) -> bool:
        if self.is_leaf():
            return self.data is not None
        return self.is_valid_node() and self.zero.is_valid_tree() and self.one.is_valid_tree()

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode.leaf({self.data!r})"
        return f"HuffmanNode(data={self.data!r}, zero={self.zero!r}, one={self.one!r})"


class HuffmanCodeTree:
    """Binary code tree used to decode a bitstream.

    Paths are added optimistically: colliding codes overwrite each other and
    a code that is a prefix of another leaves a payload on an internal node.
    Neither is reported at insert time; ``is_valid`` is the only check, and
    ``decode`` refuses to run on an invalid tree.
    """

    def __init__(self, root=None):
        self.root = root if root is not None else HuffmanNode()

    @classmethod
    def from_codebook(cls, codebook):
        tree = cls()
        for symbol in codebook:
            tree.insert(codebook.lookup(symbol), symbol)
        return tree

    def is_valid(self) -> bool:
        return self.root.is_valid_tree()

    def insert(self, seq, symbol) -> None:
        node = self.root
        for bit in seq:
            next_node = node.child(bit)
            if next_node is None: # create the internal node on the way down
                next_node = HuffmanNode()
                if bit:
                    node.one = next_node
                else:
                    node.zero = next_node
            node = next_node
        node.data = symbol # last write wins

    put = insert

    def decode(self, bits):
        if not self.is_valid():
            return None
        if self.root.is_leaf(): # a lone leaf has the empty code, no bit can be consumed
            return None if any(True for _ in bits) else ""

        decoded = []
        node = self.root
        for bit in bits:
            node = node.child(bit)
            if node.is_leaf(): # reached a leaf
                decoded.append(node.data)
                node = self.root # reset to the root for the next symbol

        # bits left over after the last leaf are an incomplete code and are dropped
        return "".join(decoded)

    def codes(self):
        return generate_huffman_codes(self.root)


def generate_huffman_codes(root): # root: root of the code tree
    codes = {}
    def generate_codes_helper(node, current_code): # recursive helper function to traverse the tree and collect codes
        if node is None:
            return

        # Leaf node -> record its path, first path wins for repeated symbols
        if node.is_leaf():
            if node.data is not None and node.data not in codes:
                codes[node.data] = bitarray(current_code)
            return

        generate_codes_helper(node.zero, current_code + '0')
        generate_codes_helper(node.one, current_code + '1')

    generate_codes_helper(root, '')
    return codes # symbol -> bitarray with the root-to-leaf path


def build_balanced_tree(symbols): # symbols: distinct symbols, kept in order left to right
    symbols = list(symbols)
    if not symbols:
        raise ValueError("cannot build a code tree without symbols")
    if len(set(symbols)) != len(symbols):
        raise ValueError("symbols must be distinct")

    # A single symbol still needs a one-bit code, so both branches carry it
    if len(symbols) == 1:
        return HuffmanNode.internal(HuffmanNode.leaf(symbols[0]), HuffmanNode.leaf(symbols[0]))

    def build_tree(i, j): # symbols[i..j] inclusive
        if i == j:
            return HuffmanNode.leaf(symbols[i])
        mid = (i + j) // 2
        return HuffmanNode.internal(build_tree(i, mid), build_tree(mid + 1, j))

    return build_tree(0, len(symbols) - 1)
