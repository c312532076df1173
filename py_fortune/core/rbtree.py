"""
Red-black tree keeping an explicit sequence order.

The beachline's order is not derivable from a stored key (arc positions
move with the sweep line), so nodes are placed by "insert after this node"
rather than by comparison. Each node also caches its in-order previous and
next neighbours for O(1) traversal.

Based on Franck Bui-Huu's rbtree (libtree, rb.c).
"""

from typing import Iterator, Optional


class RBNode:
    """Tree linkage shared by beach sections and circle events."""

    def __init__(self):
        self.left: Optional["RBNode"] = None
        self.right: Optional["RBNode"] = None
        self.parent: Optional["RBNode"] = None
        self.previous: Optional["RBNode"] = None
        self.next: Optional["RBNode"] = None
        self.red = False


class RBTree:
    """
    Balanced ordered sequence.

    Nodes passed to ``insert_successor``/``remove_node`` are assumed to
    belong to this tree; nothing is validated.
    """

    def __init__(self):
        self.root: Optional[RBNode] = None

    def __bool__(self):
        return self.root is not None

    def __iter__(self) -> Iterator[RBNode]:
        node = self.get_first(self.root) if self.root else None
        while node:
            yield node
            node = node.next

    def __len__(self):
        return sum(1 for _ in self)

    def insert_successor(self, node: Optional[RBNode], successor: RBNode) -> None:
        """Insert ``successor`` right after ``node`` (at the head if ``node`` is None)."""
        if node:
            successor.previous = node
            successor.next = node.next
            if node.next:
                node.next.previous = successor
            node.next = successor
            if node.right:
                node = node.right
                while node.left:
                    node = node.left
                node.left = successor
            else:
                node.right = successor
            parent = node
        elif self.root:
            node = self.get_first(self.root)
            successor.previous = None
            successor.next = node
            node.previous = successor
            node.left = successor
            parent = node
        else:
            successor.previous = successor.next = None
            self.root = successor
            parent = None

        successor.left = successor.right = None
        successor.parent = parent
        successor.red = True

        # Recolor and rotate (two rotations at most).
        node = successor
        while parent and parent.red:
            grandpa = parent.parent
            if parent is grandpa.left:
                uncle = grandpa.right
                if uncle and uncle.red:
                    parent.red = uncle.red = False
                    grandpa.red = True
                    node = grandpa
                else:
                    if node is parent.right:
                        self.rotate_left(parent)
                        node = parent
                        parent = node.parent
                    parent.red = False
                    grandpa.red = True
                    self.rotate_right(grandpa)
            else:
                uncle = grandpa.left
                if uncle and uncle.red:
                    parent.red = uncle.red = False
                    grandpa.red = True
                    node = grandpa
                else:
                    if node is parent.left:
                        self.rotate_right(parent)
                        node = parent
                        parent = node.parent
                    parent.red = False
                    grandpa.red = True
                    self.rotate_left(grandpa)
            parent = node.parent
        self.root.red = False

    def remove_node(self, node: RBNode) -> None:
        if node.next:
            node.next.previous = node.previous
        if node.previous:
            node.previous.next = node.next
        node.next = node.previous = None

        parent = node.parent
        left = node.left
        right = node.right
        if left is None:
            successor = right
        elif right is None:
            successor = left
        else:
            successor = self.get_first(right)

        if parent:
            if parent.left is node:
                parent.left = successor
            else:
                parent.right = successor
        else:
            self.root = successor

        if left and right:
            is_red = successor.red
            successor.red = node.red
            successor.left = left
            left.parent = successor
            if successor is not right:
                parent = successor.parent
                successor.parent = node.parent
                child = successor.right
                parent.left = child
                successor.right = right
                right.parent = successor
            else:
                successor.parent = parent
                parent = successor
                child = successor.right
        else:
            is_red = node.red
            child = successor

        node.left = node.right = node.parent = None

        # 'child' took the place of the physically removed node, under 'parent'.
        if child:
            child.parent = parent
        if is_red:
            return
        if child and child.red:
            child.red = False
            return

        while True:
            if child is self.root:
                break
            if child is parent.left:
                sibling = parent.right
                if sibling.red:
                    sibling.red = False
                    parent.red = True
                    self.rotate_left(parent)
                    sibling = parent.right
                if (sibling.left and sibling.left.red) or (sibling.right and sibling.right.red):
                    if not sibling.right or not sibling.right.red:
                        sibling.left.red = False
                        sibling.red = True
                        self.rotate_right(sibling)
                        sibling = parent.right
                    sibling.red = parent.red
                    parent.red = sibling.right.red = False
                    self.rotate_left(parent)
                    child = self.root
                    break
            else:
                sibling = parent.left
                if sibling.red:
                    sibling.red = False
                    parent.red = True
                    self.rotate_right(parent)
                    sibling = parent.left
                if (sibling.left and sibling.left.red) or (sibling.right and sibling.right.red):
                    if not sibling.left or not sibling.left.red:
                        sibling.right.red = False
                        sibling.red = True
                        self.rotate_left(sibling)
                        sibling = parent.left
                    sibling.red = parent.red
                    parent.red = sibling.left.red = False
                    self.rotate_right(parent)
                    child = self.root
                    break
            sibling.red = True
            child = parent
            parent = parent.parent
            if child.red:
                break

        if child:
            child.red = False

    def rotate_left(self, node: RBNode) -> None:
        p = node
        q = node.right  # never None here
        parent = p.parent
        if parent:
            if parent.left is p:
                parent.left = q
            else:
                parent.right = q
        else:
            self.root = q
        q.parent = parent
        p.parent = q
        p.right = q.left
        if p.right:
            p.right.parent = p
        q.left = p

    def rotate_right(self, node: RBNode) -> None:
        p = node
        q = node.left  # never None here
        parent = p.parent
        if parent:
            if parent.left is p:
                parent.left = q
            else:
                parent.right = q
        else:
            self.root = q
        q.parent = parent
        p.parent = q
        p.left = q.right
        if p.left:
            p.left.parent = p
        q.right = p

    @staticmethod
    def get_first(node: RBNode) -> RBNode:
        while node.left:
            node = node.left
        return node

    @staticmethod
    def get_last(node: RBNode) -> RBNode:
        while node.right:
            node = node.right
        return node
