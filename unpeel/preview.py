import matplotlib.pyplot as plt
import numpy as np
from PIL import Image


def loadRGBA(path) -> np.ndarray:
    with Image.open(path) as im:
        return np.asarray(im.convert('RGBA'))


#podgląd: oryginał, wynik i mapa różnic obok siebie
def show_comparison(input_path, output_path):
    before = loadRGBA(input_path)
    after  = loadRGBA(output_path)
    diff   = np.abs(before[..., :3].astype(np.int16) - after[..., :3]).max(axis=2)

    fig, axes = plt.subplots(1, 3, figsize=(12, 4))
    for ax, img, title in zip(axes, (before, after), ('Original', 'Unpeeled')):
        ax.imshow(img)
        ax.set_title(title)
        ax.axis('off')
    axes[2].imshow(diff, cmap='gray')
    axes[2].set_title('|difference|')
    axes[2].axis('off')
    plt.tight_layout()
    plt.show()
