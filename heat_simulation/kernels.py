"""
CUDA kernels. One thread per cell, launched on a 2D grid of square tiles.

All grids are linear float32 arrays indexed ``x + y * dim``; threads that land
outside the grid (when ``dim`` is not a multiple of the tile) return early.
"""
from numba import cuda


@cuda.jit
def copy_heaters_kernel(heaters, dst, dim):
    x, y = cuda.grid(2)
    if x >= dim or y >= dim:
        return
    offset = x + y * dim
    c = heaters[offset]
    if c != 0:
        dst[offset] = c


@cuda.jit
def blend_kernel(src, dst, dim, speed, reflect_rows):
    x, y = cuda.grid(2)
    if x >= dim or y >= dim:
        return
    offset = x + y * dim

    left = offset - 1
    right = offset + 1
    if x == 0:
        left += 1
    if x == dim - 1:
        right -= 1

    top = offset - dim
    bottom = offset + dim
    if y == 0:
        top = offset + dim if reflect_rows else offset
    if y == dim - 1:
        bottom = offset - dim if reflect_rows else offset

    c = src[offset]
    gradient = src[left] + src[right] + src[top] + src[bottom] - 4 * c
    dst[offset] = c + speed * gradient


@cuda.jit(device=True)
def _hue_channel(n1, n2, hue):
    if hue > 360:
        hue -= 360
    elif hue < 0:
        hue += 360

    if hue < 60:
        return n1 + (n2 - n1) * hue / 60.0
    if hue < 180:
        return n2
    if hue < 240:
        return n1 + (n2 - n1) * (240 - hue) / 60.0
    return n1


@cuda.jit(device=True)
def _to_byte(channel):
    return min(max(int(255 * channel), 0), 255)


@cuda.jit
def float_to_color_kernel(src, rgba, dim):
    x, y = cuda.grid(2)
    if x >= dim or y >= dim:
        return
    offset = x + y * dim

    lightness = src[offset]
    saturation = 1.0
    hue = (180 + int(360.0 * lightness)) % 360
    if lightness <= 0.5:
        m2 = lightness * (1 + saturation)
    else:
        m2 = lightness + saturation - lightness * saturation
    m1 = 2 * lightness - m2

    rgba[offset, 0] = _to_byte(_hue_channel(m1, m2, hue + 120))
    rgba[offset, 1] = _to_byte(_hue_channel(m1, m2, hue))
    rgba[offset, 2] = _to_byte(_hue_channel(m1, m2, hue - 120))
    rgba[offset, 3] = 255
