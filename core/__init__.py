"""core/ -- Kernel: configuration and the clock seam. No reverse dependency on main.py."""
