# medvision/core/__init__.py
