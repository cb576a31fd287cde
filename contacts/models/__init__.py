from .contact import Contact
from .item import Item
