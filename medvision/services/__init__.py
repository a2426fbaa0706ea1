# medvision/services/__init__.py
