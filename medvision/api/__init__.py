# medvision/api/__init__.py
