"""Image operations used for cell detection: loading, filtering, edge and
Hough detectors, and simple drawing on BGR ``uint8`` arrays."""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont
from scipy import ndimage

from .geometry import to_pil_image

Color = tuple[int, int, int]


def load_image(path: str | Path) -> np.ndarray | None:
    """Read an image file as a BGR ``uint8`` array; ``None`` if it cannot be read."""
    try:
        with Image.open(path) as img:
            rgb = np.asarray(img.convert("RGB"), dtype=np.uint8)
    except (OSError, ValueError):
        return None
    return np.ascontiguousarray(rgb[..., ::-1])


def save_image(path: str | Path, image: np.ndarray) -> bool:
    """Write a grayscale, BGR or BGRA array to a file; return whether it worked."""
    pil = to_pil_image(image)
    if pil is None:
        return False
    try:
        pil.save(path)
    except (OSError, ValueError, KeyError):
        return False
    return True


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert a BGR (or BGRA) image to grayscale; grayscale input is copied."""
    arr = np.asarray(image)
    if arr.ndim == 2:
        return arr.copy()
    b = arr[..., 0].astype(np.float64)
    g = arr[..., 1].astype(np.float64)
    r = arr[..., 2].astype(np.float64)
    gray = 0.299 * r + 0.587 * g + 0.114 * b
    return np.clip(np.rint(gray), 0, 255).astype(np.uint8)


def median_blur(image: np.ndarray, ksize: int) -> np.ndarray:
    """Median filter with a square odd aperture and replicated borders."""
    if ksize < 1 or ksize % 2 == 0:
        raise ValueError("ksize must be a positive odd number")
    arr = np.asarray(image)
    size = (ksize, ksize) if arr.ndim == 2 else (ksize, ksize, 1)
    return ndimage.median_filter(arr, size=size, mode="nearest")


def _gradients(image: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    data = np.asarray(image, dtype=np.float64)
    gx = ndimage.sobel(data, axis=1, mode="nearest")
    gy = ndimage.sobel(data, axis=0, mode="nearest")
    return gx, gy


def _neighbour(a: np.ndarray, dy: int, dx: int) -> np.ndarray:
    padded = np.pad(a, 1, mode="constant")
    h, w = a.shape
    return padded[1 + dy : 1 + dy + h, 1 + dx : 1 + dx + w]


def canny(image: np.ndarray, low: float, high: float) -> np.ndarray:
    """Canny edge detector on a grayscale image; returns a 0/255 edge map."""
    gray = to_gray(image) if np.asarray(image).ndim == 3 else np.asarray(image)
    low, high = min(low, high), max(low, high)
    gx, gy = _gradients(gray)
    mag = np.abs(gx) + np.abs(gy)
    angle = np.degrees(np.arctan2(gy, gx)) % 180.0

    horizontal = (angle < 22.5) | (angle >= 157.5)
    diag_down = (angle >= 22.5) & (angle < 67.5)
    vertical = (angle >= 67.5) & (angle < 112.5)
    diag_up = (angle >= 112.5) & (angle < 157.5)

    keep = np.zeros(mag.shape, dtype=bool)
    for mask, (dy, dx) in (
        (horizontal, (0, 1)),
        (diag_down, (1, 1)),
        (vertical, (1, 0)),
        (diag_up, (1, -1)),
    ):
        ahead = _neighbour(mag, dy, dx)
        behind = _neighbour(mag, -dy, -dx)
        keep |= mask & (mag > behind) & (mag >= ahead)

    strong = keep & (mag > high)
    weak = keep & (mag > low)
    labels, count = ndimage.label(weak, structure=np.ones((3, 3), dtype=bool))
    if count == 0:
        return np.zeros(mag.shape, dtype=np.uint8)
    connected = np.zeros(count + 1, dtype=bool)
    connected[np.unique(labels[strong])] = True
    connected[0] = False
    return np.where(connected[labels], 255, 0).astype(np.uint8)


def hough_circles(
    image: np.ndarray,
    dp: float,
    min_dist: float,
    param1: float,
    param2: float,
    min_radius: int,
    max_radius: int,
) -> list[tuple[float, float, float]]:
    """Hough gradient circle detection on a grayscale image.

    ``param1`` is the upper Canny threshold, ``param2`` the accumulator
    threshold for centres. Returns ``(x, y, r)`` tuples, strongest first.
    """
    if dp <= 0:
        raise ValueError("dp must be positive")
    if min_dist <= 0:
        raise ValueError("min_dist must be positive")
    gray = np.asarray(image)
    if gray.ndim != 2:
        raise ValueError("hough_circles expects a single-channel image")
    h, w = gray.shape
    min_r = max(int(min_radius), 1)
    max_r = int(max_radius) if max_radius > 0 else max(h, w)
    if max_r < min_r:
        return []

    edges = canny(gray, max(param1 / 2.0, 1.0), param1)
    gx, gy = _gradients(gray)
    ys, xs = np.nonzero(edges)
    gxe, gye = gx[ys, xs], gy[ys, xs]
    norm = np.hypot(gxe, gye)
    valid = norm > 0
    ys, xs, gxe, gye, norm = ys[valid], xs[valid], gxe[valid], gye[valid], norm[valid]
    if xs.size == 0:
        return []
    ux, uy = gxe / norm, gye / norm

    acc_h = int(math.ceil(h / dp)) + 2
    acc_w = int(math.ceil(w / dp)) + 2
    acc = np.zeros(acc_h * acc_w, dtype=np.int64)
    radii = np.arange(min_r, max_r + 1, dtype=np.float64)
    for sign in (1.0, -1.0):
        cx = (xs[:, None] + sign * radii[None, :] * ux[:, None]) / dp
        cy = (ys[:, None] + sign * radii[None, :] * uy[:, None]) / dp
        ix = np.rint(cx).astype(np.int64)
        iy = np.rint(cy).astype(np.int64)
        inside = (ix >= 0) & (ix < acc_w) & (iy >= 0) & (iy < acc_h)
        np.add.at(acc, iy[inside] * acc_w + ix[inside], 1)
    acc = acc.reshape(acc_h, acc_w)

    peaks = (acc > param2) & (acc == ndimage.maximum_filter(acc, size=3, mode="constant"))
    py, px = np.nonzero(peaks)
    order = np.argsort(-acc[py, px], kind="stable")

    centres: list[tuple[float, float]] = []
    min_dist_sq = min_dist * min_dist
    for k in order:
        cx, cy = px[k] * dp, py[k] * dp
        if any((cx - ox) ** 2 + (cy - oy) ** 2 < min_dist_sq for ox, oy in centres):
            continue
        centres.append((float(cx), float(cy)))

    circles: list[tuple[float, float, float]] = []
    for cx, cy in centres:
        dist = np.hypot(xs - cx, ys - cy)
        near = dist[(dist >= min_r - 0.5) & (dist <= max_r + 0.5)]
        if near.size == 0:
            continue
        bins = np.bincount(np.rint(near).astype(np.int64), minlength=max_r + 2)
        smooth = np.convolve(bins, np.ones(3, dtype=np.int64), mode="same")
        smooth[:min_r] = 0
        best = int(np.argmax(smooth))
        if smooth[best] < param2:
            continue
        circles.append((cx, cy, float(best)))
    return circles


def hough_lines_p(
    edges: np.ndarray,
    rho: float,
    theta: float,
    threshold: int,
    min_line_length: float,
    max_line_gap: float,
) -> list[tuple[int, int, int, int]]:
    """Find line segments on a binary edge map as ``(x1, y1, x2, y2)``."""
    if rho <= 0 or theta <= 0:
        raise ValueError("rho and theta must be positive")
    ys, xs = np.nonzero(np.asarray(edges))
    if xs.size == 0:
        return []
    thetas = np.arange(0.0, math.pi, theta)
    cos_t, sin_t = np.cos(thetas), np.sin(thetas)
    h, w = np.asarray(edges).shape
    max_rho = math.hypot(h, w)
    offset = int(math.ceil(max_rho / rho))
    n_rho = 2 * offset + 1

    rho_vals = xs[:, None] * cos_t[None, :] + ys[:, None] * sin_t[None, :]
    idx = np.rint(rho_vals / rho).astype(np.int64) + offset
    acc = np.zeros((n_rho, thetas.size), dtype=np.int64)
    np.add.at(acc, (idx, np.broadcast_to(np.arange(thetas.size), idx.shape)), 1)

    ri, ti = np.nonzero(acc >= threshold)
    order = np.argsort(-acc[ri, ti], kind="stable")
    remaining = np.ones(xs.size, dtype=bool)
    lines: list[tuple[int, int, int, int]] = []
    for k in order:
        t = ti[k]
        r_val = (ri[k] - offset) * rho
        on_line = remaining & (np.abs(rho_vals[:, t] - r_val) <= max(rho, 1.0))
        if np.count_nonzero(on_line) < threshold:
            continue
        pts = np.nonzero(on_line)[0]
        along = -xs[pts] * sin_t[t] + ys[pts] * cos_t[t]
        sort = np.argsort(along, kind="stable")
        pts, along = pts[sort], along[sort]
        splits = np.nonzero(np.diff(along) > max_line_gap)[0] + 1
        for seg_pts, seg_along in zip(np.split(pts, splits), np.split(along, splits)):
            if seg_along[-1] - seg_along[0] < min_line_length:
                continue
            a, b = seg_pts[0], seg_pts[-1]
            lines.append((int(xs[a]), int(ys[a]), int(xs[b]), int(ys[b])))
            remaining[seg_pts] = False
    return lines


def draw_rectangle(
    image: np.ndarray,
    x: int,
    y: int,
    width: int,
    height: int,
    color: Color,
    thickness: int = 1,
) -> np.ndarray:
    """Draw a rectangle outline in place, clipped to the image; returns it."""
    if width <= 0 or height <= 0:
        return image
    h, w = image.shape[:2]
    x2, y2 = x + width - 1, y + height - 1
    half = max(thickness, 1) // 2
    extra = max(thickness, 1) - half - 1
    value = np.asarray(color, dtype=image.dtype)[: image.shape[2]] if image.ndim == 3 else color[0]

    def fill(top: int, bottom: int, left: int, right: int) -> None:
        top, left = max(top, 0), max(left, 0)
        bottom, right = min(bottom, h - 1), min(right, w - 1)
        if top <= bottom and left <= right:
            image[top : bottom + 1, left : right + 1] = value

    fill(y - half, y + extra, x - half, x2 + extra)
    fill(y2 - half, y2 + extra, x - half, x2 + extra)
    fill(y - half, y2 + extra, x - half, x + extra)
    fill(y - half, y2 + extra, x2 - half, x2 + extra)
    return image


def _font(scale: float) -> ImageFont.ImageFont:
    size = max(int(round(22 * scale)), 6)
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        return ImageFont.load_default()


def put_text(
    image: np.ndarray,
    text: str,
    x: int,
    y: int,
    color: Color,
    scale: float = 1.0,
) -> np.ndarray:
    """Draw text in place on a BGR image with ``(x, y)`` at the baseline's left end."""
    font = _font(scale)
    pil = Image.fromarray(np.ascontiguousarray(image[..., 2::-1]))
    draw = ImageDraw.Draw(pil)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    draw.text((x, y - bottom), text, font=font, fill=(color[2], color[1], color[0]))
    image[..., :3] = np.asarray(pil)[..., ::-1]
    return image